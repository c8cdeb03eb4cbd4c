"""Configuration management for PortKiller."""

import logging
import os
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ELEVATION_METHODS = ("auto", "osascript", "pkexec", "sudo", "none")


def _current_uid() -> int:
    getuid = getattr(os, "getuid", None)
    return getuid() if getuid else 501


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PORTKILLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "PortKiller"
    debug: bool = False
    json_logs: bool = False
    host: str = "127.0.0.1"
    port: int = 8765

    # External programs
    lsof_path: str = "lsof"
    ps_path: str = "ps"
    kill_path: str = "kill"
    osascript_path: str = "/usr/bin/osascript"
    pkexec_path: str = "pkexec"
    sudo_path: str = "sudo"

    # Privileged fallback: auto picks osascript on macOS, pkexec elsewhere
    elevation: str = "auto"

    # Timeouts (seconds)
    command_timeout: float = 10.0
    elevation_timeout: float = 120.0  # user is typing a password

    # Scanning
    owner_lookup_concurrency: int = 8
    fallback_owner_uid: int = Field(default_factory=_current_uid, ge=0)

    # Comma-separated process names added to the built-in policy table
    extra_blocked_processes: str = ""
    extra_critical_processes: str = ""

    @field_validator("elevation")
    @classmethod
    def validate_elevation(cls, v: str) -> str:
        """Validate the privilege escalation method."""
        v = v.strip().lower()
        if v not in ELEVATION_METHODS:
            raise ValueError(f"elevation must be one of: {', '.join(ELEVATION_METHODS)}")
        return v

    @field_validator("owner_lookup_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Owner lookups need at least one slot."""
        if v < 1:
            raise ValueError("owner_lookup_concurrency must be at least 1")
        return v

    @field_validator("command_timeout", "elevation_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v


settings = Settings()


def _split_names(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def get_extra_blocked_processes() -> list[str]:
    """Process names configured as never-killable on top of the built-in table."""
    return _split_names(settings.extra_blocked_processes)


def get_extra_critical_processes() -> list[str]:
    """Process names configured as needing confirmation on top of the built-in table."""
    return _split_names(settings.extra_critical_processes)


def get_config_dict() -> dict[str, Any]:
    """Get config as dict for API responses."""
    return {
        "app_name": settings.app_name,
        "debug": settings.debug,
        "elevation": settings.elevation,
        "command_timeout": settings.command_timeout,
        "owner_lookup_concurrency": settings.owner_lookup_concurrency,
        "fallback_owner_uid": settings.fallback_owner_uid,
    }
