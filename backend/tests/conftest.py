"""Pytest fixtures for backend tests."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from portkiller.api.ports import get_port_service
from portkiller.guardrails.policies import ProcessPolicy
from portkiller.main import app
from portkiller.scanner.port_scanner import PortScanner
from portkiller.scanner.source import ListingSource
from portkiller.service import PortService
from portkiller.termination.killer import ProcessKiller
from portkiller.tools.shell import CommandResult

LSOF_HEADER = "COMMAND     PID   USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"

SAMPLE_LSOF = "\n".join([
    LSOF_HEADER,
    "node      4242  alice   23u  IPv6 0x9d1c6f3a      0t0  TCP *:3000 (LISTEN)",
    "sshd       412   root    3u  IPv4 0x1             0t0  TCP *:22 (LISTEN)",
    "postgres   880  alice    7u  IPv6 0x2             0t0  TCP [::1]:5432 (LISTEN)",
    "postgres   880  alice    8u  IPv4 0x3             0t0  TCP 127.0.0.1:5432 (LISTEN)",
    "Code\\x20Helper 901 alice 40u IPv4 0x4            0t0  TCP 127.0.0.1:49152 (LISTEN)",
    "",
])


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class FakeRunner:
    """Stands in for run_command; answers from a handler and records calls."""

    def __init__(self, handler: Callable[[list[str]], CommandResult]) -> None:
        self.handler = handler
        self.calls: list[list[str]] = []

    async def __call__(self, argv: list[str], timeout: float) -> CommandResult:
        self.calls.append(list(argv))
        return self.handler(list(argv))

    def commands(self, program: str) -> list[list[str]]:
        return [c for c in self.calls if c[0] == program]


def host_runner(
    lsof: CommandResult | None = None,
    uids: dict[int, str] | None = None,
    kill_exit: int = 0,
    elevated: CommandResult | None = None,
) -> FakeRunner:
    """Fake host: canned lsof output, per-pid ps output, kill exit codes."""
    lsof = lsof or CommandResult(exit_code=0, stdout=SAMPLE_LSOF)
    uids = uids if uids is not None else {4242: "501", 412: "0", 880: "501", 901: "501"}
    elevated = elevated or CommandResult(exit_code=0)

    def handler(argv: list[str]) -> CommandResult:
        program = argv[0]
        if program == "lsof":
            return lsof
        if program == "ps":
            pid = int(argv[2])
            if pid in uids:
                return CommandResult(exit_code=0, stdout=f"  {uids[pid]}\n")
            return CommandResult(exit_code=1)
        if program == "kill":
            return CommandResult(exit_code=kill_exit, stderr="" if kill_exit == 0 else "Operation not permitted")
        return elevated

    return FakeRunner(handler)


@pytest.fixture
def make_runner():
    """Factory for fake hosts."""
    return host_runner


def build_service(runner: FakeRunner, elevation: str = "pkexec") -> PortService:
    source = ListingSource(
        runner=runner,
        lsof_path="lsof",
        ps_path="ps",
        timeout=5,
        fallback_owner_uid=501,
    )
    return PortService(
        scanner=PortScanner(source=source, owner_lookup_concurrency=4),
        killer=ProcessKiller(runner=runner, elevation=elevation, timeout=5, elevation_timeout=5),
        policy=ProcessPolicy(),
    )


@pytest.fixture
def make_service():
    """Factory for services wired to a fake host."""
    return build_service


@pytest.fixture
def runner():
    return host_runner()


@pytest.fixture
def service(runner):
    return build_service(runner)


@contextmanager
def client_for(service: PortService) -> Iterator[TestClient]:
    """Test client whose routes use ``service``."""
    app.dependency_overrides[get_port_service] = lambda: service
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(service):
    """Create test client with the port service dependency override."""
    with client_for(service) as test_client:
        yield test_client
