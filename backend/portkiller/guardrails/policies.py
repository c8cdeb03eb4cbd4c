"""Termination risk policy.

Decides, per port record, whether killing the owning process is:
- blocked outright (never, not even with confirmation)
- allowed only after the user confirms
- allowed immediately

Process names live in a static table so the lists can be extended without
touching the classification functions.
"""

from dataclasses import dataclass, field

from portkiller.config import get_extra_blocked_processes, get_extra_critical_processes
from portkiller.models import PortRecord, TerminationDecision

INIT_PID = 1
EARLY_BOOT_PID_LIMIT = 100
SUPERUSER_UID = 0

# Process name -> decision. Names are matched exactly (case-sensitive).
# Observed macOS service names, not an authoritative list.
PROCESS_POLICIES: dict[str, TerminationDecision] = {
    "kernel_task": TerminationDecision.BLOCKED,
    "launchd": TerminationDecision.BLOCKED,
    # Window server and login session
    "WindowServer": TerminationDecision.REQUIRES_CONFIRMATION,
    "loginwindow": TerminationDecision.REQUIRES_CONFIRMATION,
    "SystemUIServer": TerminationDecision.REQUIRES_CONFIRMATION,
    "Dock": TerminationDecision.REQUIRES_CONFIRMATION,
    "Finder": TerminationDecision.REQUIRES_CONFIRMATION,
    # Audio, bluetooth, network and system daemons
    "coreaudiod": TerminationDecision.REQUIRES_CONFIRMATION,
    "bluetoothd": TerminationDecision.REQUIRES_CONFIRMATION,
    "networkd": TerminationDecision.REQUIRES_CONFIRMATION,
    "configd": TerminationDecision.REQUIRES_CONFIRMATION,
    "mDNSResponder": TerminationDecision.REQUIRES_CONFIRMATION,
    "notifyd": TerminationDecision.REQUIRES_CONFIRMATION,
    "diskarbitrationd": TerminationDecision.REQUIRES_CONFIRMATION,
}


@dataclass
class ProcessPolicy:
    """Classification rules for kill requests."""

    names: dict[str, TerminationDecision] = field(default_factory=lambda: dict(PROCESS_POLICIES))

    def extended(
        self,
        blocked: list[str] | None = None,
        critical: list[str] | None = None,
    ) -> "ProcessPolicy":
        """Return a copy with extra names. Blocked entries are never downgraded."""
        names = dict(self.names)
        for name in critical or []:
            names.setdefault(name, TerminationDecision.REQUIRES_CONFIRMATION)
        for name in blocked or []:
            names[name] = TerminationDecision.BLOCKED
        return ProcessPolicy(names=names)

    def _name_decision(self, record: PortRecord) -> TerminationDecision | None:
        return self.names.get(record.process_name)

    def is_completely_blocked(self, record: PortRecord) -> bool:
        """True for processes that must never be killed."""
        return (
            self._name_decision(record) == TerminationDecision.BLOCKED
            or record.pid == INIT_PID
        )

    def is_system_critical(self, record: PortRecord) -> bool:
        """True for processes whose termination may destabilize the system."""
        return (
            self._name_decision(record) is not None
            or record.owner_uid == SUPERUSER_UID
            or record.pid < EARLY_BOOT_PID_LIMIT
        )

    def classify(self, record: PortRecord) -> TerminationDecision:
        if self.is_completely_blocked(record):
            return TerminationDecision.BLOCKED
        if self.is_system_critical(record):
            return TerminationDecision.REQUIRES_CONFIRMATION
        return TerminationDecision.ALLOWED

    def explain(self, record: PortRecord) -> list[str]:
        """Human-readable reasons behind the classification."""
        reasons = []
        decision = self._name_decision(record)
        if decision == TerminationDecision.BLOCKED:
            reasons.append(f"{record.process_name} is a protected system process")
        elif decision is not None:
            reasons.append(f"{record.process_name} is a known system service")
        if record.pid == INIT_PID:
            reasons.append("PID 1 is the init process")
        elif record.pid < EARLY_BOOT_PID_LIMIT:
            reasons.append(f"PID {record.pid} was started early in boot")
        if record.owner_uid == SUPERUSER_UID:
            reasons.append("running as root")
        return reasons


DEFAULT_POLICY = ProcessPolicy()


def get_process_policy() -> ProcessPolicy:
    """Built-in policy extended with the configured process names."""
    blocked = get_extra_blocked_processes()
    critical = get_extra_critical_processes()
    if not blocked and not critical:
        return DEFAULT_POLICY
    return DEFAULT_POLICY.extended(blocked=blocked, critical=critical)


def is_completely_blocked(record: PortRecord, policy: ProcessPolicy | None = None) -> bool:
    return (policy or DEFAULT_POLICY).is_completely_blocked(record)


def is_system_critical(record: PortRecord, policy: ProcessPolicy | None = None) -> bool:
    return (policy or DEFAULT_POLICY).is_system_critical(record)


def classify(record: PortRecord, policy: ProcessPolicy | None = None) -> TerminationDecision:
    """Map a record to blocked / requires_confirmation / allowed."""
    return (policy or DEFAULT_POLICY).classify(record)
