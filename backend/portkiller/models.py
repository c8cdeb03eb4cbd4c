"""Core models for PortKiller."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class TerminationDecision(str, Enum):
    """What the risk policy allows for a kill request."""

    BLOCKED = "blocked"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    ALLOWED = "allowed"


class PortRecord(BaseModel):
    """A listening TCP endpoint and the process that owns it."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(ge=1, le=65535)
    process_name: str
    pid: int = Field(ge=INT32_MIN, le=INT32_MAX)
    owner_uid: int = Field(ge=0)
    bind_address: str = "*"
    protocol: str = "TCP"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_system_port(self) -> bool:
        return self.port < 1024

    @property
    def key(self) -> tuple[int, int]:
        """De-duplication key within one scan."""
        return (self.port, self.pid)


@dataclass
class ScanResult:
    """Outcome of one scan. A failed scan carries no records."""

    records: tuple[PortRecord, ...] = ()
    error: str | None = None
    scanned_at: datetime = field(default_factory=datetime.now)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class TerminationStage(str, Enum):
    """Tier of the kill strategy."""

    DIRECT = "direct"
    ELEVATED = "elevated"


class TerminationOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TerminationAttempt:
    """One signal delivery attempt."""

    stage: TerminationStage
    exit_code: int | None
    diagnostic: str = ""

    @property
    def delivered(self) -> bool:
        return self.exit_code == 0


@dataclass
class TerminationResult:
    """Final state of the direct -> elevated kill sequence."""

    pid: int
    outcome: TerminationOutcome
    stage: TerminationStage
    message: str = ""
    attempts: list[TerminationAttempt] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome == TerminationOutcome.SUCCEEDED


@dataclass
class KillOutcome:
    """Result of a kill request after the policy check.

    ``termination`` is None when the request was refused before any signal
    was sent; ``rescan`` is only set after a successful kill.
    """

    decision: TerminationDecision
    message: str
    termination: TerminationResult | None = None
    rescan: ScanResult | None = None

    @property
    def success(self) -> bool:
        return self.termination is not None and self.termination.success
