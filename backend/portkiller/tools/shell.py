"""External command execution."""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from running an external program.

    ``exit_code`` is None when the program never completed (not found,
    not executable, or killed after a timeout); ``error`` then says why.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def diagnostic(self) -> str:
        """Best available human-readable failure text."""
        text = self.stderr.strip() or (self.error or "")
        if not text and self.exit_code not in (None, 0):
            text = f"Exit code: {self.exit_code}"
        return text


# Signature shared by run_command and the fakes used in tests
CommandRunner = Callable[[list[str], float], Awaitable[CommandResult]]


async def run_command(argv: list[str], timeout: float) -> CommandResult:
    """Run a program without a shell and capture its output.

    Never raises for process-level failures: spawn errors and timeouts are
    reported through ``CommandResult.error``.
    """
    if not argv:
        return CommandResult(exit_code=None, error="No command provided")

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, "LC_ALL": "C"},
        )
    except OSError as e:
        logger.debug(f"Could not start {argv[0]}: {e}")
        return CommandResult(exit_code=None, error=f"Could not run {argv[0]}: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(exit_code=None, error=f"{argv[0]} timed out after {timeout}s")

    return CommandResult(
        exit_code=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
