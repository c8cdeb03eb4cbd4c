"""Tests for the two-tier process killer."""

import pytest

from portkiller.models import TerminationOutcome, TerminationStage
from portkiller.termination.killer import ProcessKiller, resolve_elevation_method
from portkiller.tools.shell import CommandResult


def make_killer(runner, elevation: str = "pkexec") -> ProcessKiller:
    return ProcessKiller(runner=runner, elevation=elevation, timeout=5, elevation_timeout=30)


class TestResolveElevation:
    """Tests for platform-specific escalation selection."""

    def test_auto_on_macos(self):
        assert resolve_elevation_method("auto", platform="darwin") == "osascript"

    def test_auto_on_linux(self):
        assert resolve_elevation_method("auto", platform="linux") == "pkexec"

    def test_explicit_method_kept(self):
        assert resolve_elevation_method("sudo", platform="darwin") == "sudo"


class TestProcessKiller:
    """Tests for the direct -> elevated kill sequence."""

    @pytest.mark.asyncio
    async def test_direct_success(self, make_runner):
        runner = make_runner(kill_exit=0)

        result = await make_killer(runner).terminate(4242)

        assert result.success
        assert result.stage == TerminationStage.DIRECT
        assert result.message == ""
        assert [c[1:] for c in runner.calls] == [["-9", "4242"]]

    @pytest.mark.asyncio
    async def test_falls_back_to_elevated(self, make_runner):
        """A failed plain kill escalates, and an accepted escalation succeeds."""
        runner = make_runner(kill_exit=1, elevated=CommandResult(exit_code=0))

        result = await make_killer(runner).terminate(412)

        assert result.success
        assert result.stage == TerminationStage.ELEVATED
        assert [a.stage for a in result.attempts] == [TerminationStage.DIRECT, TerminationStage.ELEVATED]
        assert result.attempts[0].diagnostic == "Operation not permitted"
        assert runner.calls[1][0] == "pkexec"
        assert runner.calls[1][-2:] == ["-9", "412"]

    @pytest.mark.asyncio
    async def test_elevation_denied(self, make_runner):
        """A cancelled authorization is a failure carrying its diagnostic."""
        runner = make_runner(
            kill_exit=1,
            elevated=CommandResult(exit_code=1, stderr="execution error: User canceled. (-128)"),
        )

        result = await make_killer(runner, elevation="osascript").terminate(412)

        assert not result.success
        assert result.outcome == TerminationOutcome.FAILED
        assert result.stage == TerminationStage.ELEVATED
        assert "User canceled" in result.message
        assert len(runner.calls) == 2

    @pytest.mark.asyncio
    async def test_elevation_tool_missing(self, make_runner):
        runner = make_runner(kill_exit=1, elevated=CommandResult(exit_code=None, error="Could not run pkexec"))

        result = await make_killer(runner).terminate(412)

        assert not result.success
        assert "Could not run pkexec" in result.message

    @pytest.mark.asyncio
    async def test_osascript_command(self, make_runner):
        runner = make_runner(kill_exit=1)

        await make_killer(runner, elevation="osascript").terminate(412)

        argv = runner.calls[1]
        assert argv[1] == "-e"
        assert argv[2] == 'do shell script "kill -9 412" with administrator privileges'

    @pytest.mark.asyncio
    async def test_sudo_command(self, make_runner):
        runner = make_runner(kill_exit=1)

        await make_killer(runner, elevation="sudo").terminate(412)

        assert runner.calls[1] == ["sudo", "-n", "kill", "-9", "412"]

    @pytest.mark.asyncio
    async def test_elevation_disabled(self, make_runner):
        """With escalation off, a failed plain kill is final."""
        runner = make_runner(kill_exit=1)

        result = await make_killer(runner, elevation="none").terminate(412)

        assert not result.success
        assert result.stage == TerminationStage.DIRECT
        assert "Operation not permitted" in result.message
        assert len(runner.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pid", [0, -1, -4242])
    async def test_non_positive_pid_refused(self, make_runner, pid):
        """Process-group pids are refused without running anything."""
        runner = make_runner()

        result = await make_killer(runner).terminate(pid)

        assert not result.success
        assert "invalid PID" in result.message
        assert runner.calls == []
        assert result.attempts == []

    @pytest.mark.asyncio
    async def test_no_retry(self, make_runner):
        """Each tier runs exactly once."""
        runner = make_runner(kill_exit=1, elevated=CommandResult(exit_code=1))

        await make_killer(runner).terminate(412)
        await make_killer(runner).terminate(412)

        assert len(runner.calls) == 4
