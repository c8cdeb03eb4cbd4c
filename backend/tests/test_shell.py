"""Tests for external command execution."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from portkiller.tools.shell import CommandResult, run_command


def fake_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


class TestCommandResult:
    def test_success(self):
        assert CommandResult(exit_code=0).success
        assert not CommandResult(exit_code=1).success
        assert not CommandResult(exit_code=None, error="missing").success

    def test_diagnostic_prefers_stderr(self):
        result = CommandResult(exit_code=1, stderr="  kill: 42: Operation not permitted\n", error="x")
        assert result.diagnostic == "kill: 42: Operation not permitted"

    def test_diagnostic_falls_back(self):
        assert CommandResult(exit_code=None, error="timed out").diagnostic == "timed out"
        assert CommandResult(exit_code=3).diagnostic == "Exit code: 3"
        assert CommandResult(exit_code=0).diagnostic == ""


class TestRunCommand:
    """Tests for run_command."""

    @pytest.mark.asyncio
    async def test_empty_argv(self):
        result = await run_command([], timeout=1)

        assert result.exit_code is None
        assert result.error == "No command provided"

    @pytest.mark.asyncio
    async def test_captures_output(self):
        process = fake_process(stdout=b"501\n", stderr=b"", returncode=0)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            result = await run_command(["ps", "-p", "1", "-o", "uid="], timeout=5)

        assert result.success
        assert result.stdout == "501\n"
        assert spawn.call_args.args == ("ps", "-p", "1", "-o", "uid=")

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        process = fake_process(stderr=b"lsof: WARNING", returncode=2)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await run_command(["lsof"], timeout=5)

        assert result.exit_code == 2
        assert result.stderr == "lsof: WARNING"

    @pytest.mark.asyncio
    async def test_missing_program(self):
        """Spawn errors are reported, not raised."""
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("no such file"))):
            result = await run_command(["lsof"], timeout=5)

        assert result.exit_code is None
        assert "Could not run lsof" in result.error

    @pytest.mark.asyncio
    async def test_timeout_kills_child(self):
        async def hang():
            await asyncio.sleep(10)

        process = fake_process()
        process.communicate = hang
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await run_command(["osascript", "-e", "x"], timeout=0.01)

        assert result.exit_code is None
        assert "timed out" in result.error
        process.kill.assert_called_once()
