"""Configuration API endpoints."""

from typing import Any

from fastapi import APIRouter

from portkiller.config import get_config_dict, get_extra_blocked_processes, get_extra_critical_processes
from portkiller.termination.killer import resolve_elevation_method

router = APIRouter(prefix="/config")


@router.get("")
async def get_config() -> dict[str, Any]:
    """Get current configuration."""
    config = get_config_dict()

    config["effective_elevation"] = resolve_elevation_method(config["elevation"])
    config["extra_blocked_processes"] = get_extra_blocked_processes()
    config["extra_critical_processes"] = get_extra_critical_processes()

    return config
