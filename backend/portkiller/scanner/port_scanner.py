"""Port scanner: lsof listing + parsing + owner lookups."""

import asyncio
import logging
import time
from datetime import datetime

from portkiller.config import settings
from portkiller.errors import ListingFailure
from portkiller.models import PortRecord, ScanResult
from portkiller.scanner.parser import ListeningSocket, parse_lsof_lines
from portkiller.scanner.source import ListingSource

logger = logging.getLogger(__name__)


class PortScanner:
    """Produces a fresh, ordered snapshot of listening ports on every call."""

    def __init__(
        self,
        source: ListingSource | None = None,
        owner_lookup_concurrency: int | None = None,
    ) -> None:
        self.source = source or ListingSource()
        self.owner_lookup_concurrency = owner_lookup_concurrency or settings.owner_lookup_concurrency

    async def _resolve_owners(self, sockets: list[ListeningSocket]) -> list[PortRecord]:
        semaphore = asyncio.Semaphore(self.owner_lookup_concurrency)

        async def resolve(entry: ListeningSocket) -> PortRecord:
            async with semaphore:
                uid = await self.source.owner_uid(entry.pid)
            return entry.to_record(uid)

        # gather keeps input order
        return list(await asyncio.gather(*(resolve(s) for s in sockets)))

    async def scan(self) -> ScanResult:
        """Scan listening TCP ports.

        Listing failures are returned as ``ScanResult.error``, never raised.
        """
        started_at = datetime.now()
        start = time.monotonic()

        try:
            output = await self.source.list_listening_sockets()
        except ListingFailure as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.warning(
                f"Scan failed: {e.message}",
                extra={"exit_code": e.exit_code, "duration_ms": round(duration_ms, 2)},
            )
            return ScanResult(error=e.message, scanned_at=started_at, duration_ms=duration_ms)

        sockets = parse_lsof_lines(output)
        records = await self._resolve_owners(sockets)

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Scan complete",
            extra={"records": len(records), "duration_ms": round(duration_ms, 2)},
        )
        return ScanResult(records=tuple(records), scanned_at=started_at, duration_ms=duration_ms)
