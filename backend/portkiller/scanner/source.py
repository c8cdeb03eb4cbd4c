"""Listing source: runs lsof and ps for the scanner."""

import logging

from portkiller.config import settings
from portkiller.errors import ListingFailure
from portkiller.tools.shell import CommandRunner, run_command

logger = logging.getLogger(__name__)

# lsof exits 1 when no file matched the selection
LSOF_OK_EXIT_CODES = (0, 1)


class ListingSource:
    """Invokes the platform socket listing and process owner lookups."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        lsof_path: str | None = None,
        ps_path: str | None = None,
        timeout: float | None = None,
        fallback_owner_uid: int | None = None,
    ) -> None:
        self.runner = runner or run_command
        self.lsof_path = lsof_path or settings.lsof_path
        self.ps_path = ps_path or settings.ps_path
        self.timeout = timeout or settings.command_timeout
        self.fallback_owner_uid = (
            settings.fallback_owner_uid if fallback_owner_uid is None else fallback_owner_uid
        )

    def listing_command(self) -> list[str]:
        # TCP only, LISTEN state only, numeric hosts and ports
        return [self.lsof_path, "-iTCP", "-sTCP:LISTEN", "-n", "-P"]

    async def list_listening_sockets(self) -> str:
        """Return raw lsof output for listening TCP sockets.

        Raises:
            ListingFailure: lsof could not run or exited abnormally.
        """
        result = await self.runner(self.listing_command(), self.timeout)

        if result.exit_code is None:
            raise ListingFailure(f"lsof failed: {result.error}", stderr=result.stderr)

        if result.exit_code not in LSOF_OK_EXIT_CODES:
            raise ListingFailure(
                f"lsof failed: {result.diagnostic or 'Unknown error'}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

        return result.stdout

    async def owner_uid(self, pid: int) -> int:
        """Resolve the numeric owner uid of a process.

        Falls back to ``fallback_owner_uid`` when the lookup is inconclusive.
        """
        result = await self.runner([self.ps_path, "-p", str(pid), "-o", "uid="], self.timeout)
        text = result.stdout.strip()

        # isdigit alone accepts non-ASCII digits that int() rejects
        if result.success and text.isascii() and text.isdigit():
            return int(text)

        logger.debug(
            f"Owner lookup inconclusive, using uid {self.fallback_owner_uid}",
            extra={"pid": pid, "exit_code": result.exit_code},
        )
        return self.fallback_owner_uid
