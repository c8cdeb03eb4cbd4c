"""API request and response models."""

from datetime import datetime

from pydantic import BaseModel, Field

from portkiller.models import PortRecord, ScanResult, TerminationDecision
from portkiller.service import PortService, split_by_port_class


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status")
    version: str = Field(description="Application version")
    elevation: str = Field(description="Privilege escalation method for kills")


class PortView(BaseModel):
    """A port record with its termination policy."""

    port: int
    process_name: str
    pid: int
    owner_uid: int
    bind_address: str
    protocol: str
    is_system_port: bool
    decision: TerminationDecision


class ScanResponse(BaseModel):
    """Snapshot of listening ports."""

    scanned_at: datetime
    duration_ms: float
    total: int = Field(description="Number of records before filtering")
    system_ports: list[PortView] = Field(default_factory=list, description="Ports below 1024")
    user_ports: list[PortView] = Field(default_factory=list, description="Ports 1024 and above")


class TerminateRequest(BaseModel):
    """Kill request for a process in the latest snapshot."""

    confirmed: bool = Field(default=False, description="User confirmed killing a system process")
    port: int | None = Field(default=None, ge=1, le=65535, description="Disambiguate by port")


class TerminateResponse(BaseModel):
    """Successful kill plus the fresh snapshot."""

    pid: int
    stage: str = Field(description="Tier that delivered the signal (direct, elevated)")
    message: str
    snapshot: ScanResponse | None = None


def to_port_view(record: PortRecord, service: PortService) -> PortView:
    return PortView(**record.model_dump(), decision=service.classify(record))


def to_scan_response(
    result: ScanResult,
    service: PortService,
    records: list[PortRecord] | None = None,
) -> ScanResponse:
    system, user = split_by_port_class(result.records if records is None else records)
    return ScanResponse(
        scanned_at=result.scanned_at,
        duration_ms=round(result.duration_ms, 2),
        total=len(result.records),
        system_ports=[to_port_view(r, service) for r in system],
        user_ports=[to_port_view(r, service) for r in user],
    )
