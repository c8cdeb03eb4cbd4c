"""Port listing and process termination endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from portkiller.api.models import (
    ScanResponse,
    TerminateRequest,
    TerminateResponse,
    to_scan_response,
)
from portkiller.models import TerminationDecision
from portkiller.service import PortService, filter_records, port_service

logger = logging.getLogger(__name__)

router = APIRouter()


def get_port_service() -> PortService:
    return port_service


@router.get("/ports", response_model=ScanResponse)
async def scan_ports(
    q: str = Query(default="", max_length=200, description="Filter by port, name, PID or address"),
    service: PortService = Depends(get_port_service),
) -> ScanResponse:
    """Rescan listening TCP ports."""
    result = await service.scan()
    if not result.ok:
        raise HTTPException(status_code=503, detail=result.error)
    return to_scan_response(result, service, filter_records(result.records, q))


@router.get("/ports/latest", response_model=ScanResponse)
async def latest_ports(
    q: str = Query(default="", max_length=200),
    service: PortService = Depends(get_port_service),
) -> ScanResponse:
    """Return the last completed scan without rescanning."""
    result = service.latest
    if result is None:
        raise HTTPException(status_code=404, detail="No scan has completed yet")
    if not result.ok:
        raise HTTPException(status_code=503, detail=result.error)
    return to_scan_response(result, service, filter_records(result.records, q))


@router.post("/processes/{pid}/terminate", response_model=TerminateResponse)
async def terminate_process(
    pid: int,
    request: TerminateRequest | None = None,
    service: PortService = Depends(get_port_service),
) -> TerminateResponse:
    """Kill a process from the latest snapshot, honoring the risk policy."""
    request = request or TerminateRequest()

    record = service.find(pid, request.port)
    if record is None:
        raise HTTPException(status_code=404, detail=f"PID {pid} not in the latest scan, rescan first")

    outcome = await service.request_termination(record, confirmed=request.confirmed)

    if outcome.decision == TerminationDecision.BLOCKED:
        raise HTTPException(status_code=403, detail=outcome.message)
    if outcome.termination is None:
        raise HTTPException(status_code=409, detail=outcome.message)
    if not outcome.success:
        raise HTTPException(status_code=502, detail=outcome.message)

    snapshot = None
    if outcome.rescan is not None and outcome.rescan.ok:
        snapshot = to_scan_response(outcome.rescan, service)

    return TerminateResponse(
        pid=pid,
        stage=outcome.termination.stage.value,
        message=outcome.message,
        snapshot=snapshot,
    )
