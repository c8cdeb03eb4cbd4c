"""Presentation-facing facade: scan, classify, kill, rescan."""

import logging

from portkiller.guardrails.policies import ProcessPolicy, get_process_policy
from portkiller.models import (
    KillOutcome,
    PortRecord,
    ScanResult,
    TerminationDecision,
    TerminationResult,
)
from portkiller.scanner.port_scanner import PortScanner
from portkiller.termination.killer import ProcessKiller

logger = logging.getLogger(__name__)


def filter_records(records: tuple[PortRecord, ...] | list[PortRecord], query: str) -> list[PortRecord]:
    """Case-insensitive search over port, process name, pid and address."""
    query = query.strip().lower()
    if not query:
        return list(records)
    return [
        r for r in records
        if query in str(r.port)
        or query in r.process_name.lower()
        or query in str(r.pid)
        or query in r.bind_address.lower()
    ]


def split_by_port_class(
    records: tuple[PortRecord, ...] | list[PortRecord],
) -> tuple[list[PortRecord], list[PortRecord]]:
    """Split into (system ports below 1024, user ports)."""
    system = [r for r in records if r.is_system_port]
    user = [r for r in records if not r.is_system_port]
    return system, user


class PortService:
    """Combines the scanner, the risk policy and the killer.

    ``latest`` holds the most recently completed scan. Scans are not
    serialized: when two overlap, whichever finishes last wins.
    """

    def __init__(
        self,
        scanner: PortScanner | None = None,
        killer: ProcessKiller | None = None,
        policy: ProcessPolicy | None = None,
    ) -> None:
        self.scanner = scanner or PortScanner()
        self.killer = killer or ProcessKiller()
        self.policy = policy or get_process_policy()
        self.latest: ScanResult | None = None

    async def scan(self) -> ScanResult:
        result = await self.scanner.scan()
        self.latest = result
        return result

    def classify(self, record: PortRecord) -> TerminationDecision:
        return self.policy.classify(record)

    def find(self, pid: int, port: int | None = None) -> PortRecord | None:
        """Look a process up in the latest snapshot."""
        if self.latest is None:
            return None
        for record in self.latest.records:
            if record.pid == pid and (port is None or record.port == port):
                return record
        return None

    async def terminate(self, pid: int) -> tuple[TerminationResult, ScanResult | None]:
        """Kill without a policy check, then rescan if the kill went through."""
        result = await self.killer.terminate(pid)
        rescan = await self.scan() if result.success else None
        return result, rescan

    async def request_termination(self, record: PortRecord, confirmed: bool = False) -> KillOutcome:
        """Kill the process behind ``record`` if the policy allows it."""
        decision = self.classify(record)

        if decision == TerminationDecision.BLOCKED:
            logger.warning(
                f"Refused to kill {record.process_name}: critical system process",
                extra={"pid": record.pid, "port": record.port},
            )
            return KillOutcome(
                decision=decision,
                message=f"Cannot kill {record.process_name} - critical system process",
            )

        if decision == TerminationDecision.REQUIRES_CONFIRMATION and not confirmed:
            reasons = "; ".join(self.policy.explain(record))
            return KillOutcome(
                decision=decision,
                message=(
                    f"'{record.process_name}' (PID: {record.pid}) is a system process ({reasons}). "
                    "Killing it may cause system instability or require a restart."
                ),
            )

        termination, rescan = await self.terminate(record.pid)
        if termination.success:
            message = f"Killed {record.process_name} (PID: {record.pid})"
        else:
            message = termination.message
        return KillOutcome(
            decision=decision,
            message=message,
            termination=termination,
            rescan=rescan,
        )


port_service = PortService()
