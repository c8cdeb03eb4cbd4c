"""Exceptions raised at the process-execution boundary."""

from typing import Any


class PortKillerError(Exception):
    """Base class for PortKiller errors."""


class ListingFailure(PortKillerError):
    """Raised when the socket listing program exits abnormally."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
    ):
        self.exit_code = exit_code
        self.stderr = stderr
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "listing_failure",
            "exit_code": self.exit_code,
            "stderr": self.stderr,
            "message": self.message,
        }
