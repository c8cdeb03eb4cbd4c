"""Two-tier process termination.

State machine::

    direct (kill -9) --ok--> succeeded
        |
        failed
        v
    elevated (kill -9 after authorization) --ok--> succeeded
        |
        failed --> failed(diagnostic)

The killer only delivers signals. Whether a process may be killed at all
is decided by the caller through the guardrails policy.
"""

import logging
import sys

from portkiller.config import settings
from portkiller.models import (
    TerminationAttempt,
    TerminationOutcome,
    TerminationResult,
    TerminationStage,
)
from portkiller.tools.shell import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)

KILL_SIGNAL = "-9"


def resolve_elevation_method(method: str, platform: str | None = None) -> str:
    """Turn ``auto`` into the platform's authorization mechanism."""
    if method != "auto":
        return method
    platform = platform or sys.platform
    return "osascript" if platform == "darwin" else "pkexec"


class ProcessKiller:
    """Sends SIGKILL, escalating privileges when the plain attempt fails."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        elevation: str | None = None,
        timeout: float | None = None,
        elevation_timeout: float | None = None,
    ) -> None:
        self.runner = runner or run_command
        self.elevation = resolve_elevation_method(elevation or settings.elevation)
        self.timeout = timeout or settings.command_timeout
        self.elevation_timeout = elevation_timeout or settings.elevation_timeout

    def direct_command(self, pid: int) -> list[str]:
        return [settings.kill_path, KILL_SIGNAL, str(pid)]

    def elevated_command(self, pid: int) -> list[str] | None:
        """Command re-issuing the kill with elevated rights, None if disabled."""
        kill = f"kill {KILL_SIGNAL} {pid}"
        if self.elevation == "osascript":
            script = f'do shell script "{kill}" with administrator privileges'
            return [settings.osascript_path, "-e", script]
        if self.elevation == "pkexec":
            return [settings.pkexec_path, settings.kill_path, KILL_SIGNAL, str(pid)]
        if self.elevation == "sudo":
            # -n: fail at once instead of waiting for a password on a missing tty
            return [settings.sudo_path, "-n", settings.kill_path, KILL_SIGNAL, str(pid)]
        return None

    @staticmethod
    def _attempt(stage: TerminationStage, result: CommandResult) -> TerminationAttempt:
        return TerminationAttempt(
            stage=stage,
            exit_code=result.exit_code,
            diagnostic=result.diagnostic,
        )

    async def terminate(self, pid: int) -> TerminationResult:
        """Kill ``pid``. Never raises; the outcome is in the result."""
        if pid <= 0:
            # kill -9 0 / -1 would signal whole process groups
            return TerminationResult(
                pid=pid,
                outcome=TerminationOutcome.FAILED,
                stage=TerminationStage.DIRECT,
                message=f"Refusing to signal invalid PID {pid}",
            )

        direct = self._attempt(
            TerminationStage.DIRECT,
            await self.runner(self.direct_command(pid), self.timeout),
        )
        attempts = [direct]

        if direct.delivered:
            logger.info("Process killed", extra={"pid": pid, "stage": "direct"})
            return TerminationResult(
                pid=pid,
                outcome=TerminationOutcome.SUCCEEDED,
                stage=TerminationStage.DIRECT,
                attempts=attempts,
            )

        command = self.elevated_command(pid)
        if command is None:
            logger.warning(
                "Kill failed and privilege escalation is disabled",
                extra={"pid": pid, "exit_code": direct.exit_code},
            )
            return TerminationResult(
                pid=pid,
                outcome=TerminationOutcome.FAILED,
                stage=TerminationStage.DIRECT,
                message=f"Failed to kill process: {direct.diagnostic or 'Unknown error'}",
                attempts=attempts,
            )

        logger.info(
            "Direct kill failed, requesting elevated privileges",
            extra={"pid": pid, "exit_code": direct.exit_code, "stage": self.elevation},
        )
        elevated = self._attempt(
            TerminationStage.ELEVATED,
            await self.runner(command, self.elevation_timeout),
        )
        attempts.append(elevated)

        if elevated.delivered:
            logger.info("Process killed", extra={"pid": pid, "stage": "elevated"})
            return TerminationResult(
                pid=pid,
                outcome=TerminationOutcome.SUCCEEDED,
                stage=TerminationStage.ELEVATED,
                attempts=attempts,
            )

        logger.warning(
            "Elevated kill failed",
            extra={"pid": pid, "exit_code": elevated.exit_code},
        )
        return TerminationResult(
            pid=pid,
            outcome=TerminationOutcome.FAILED,
            stage=TerminationStage.ELEVATED,
            message=f"Failed to kill process: {elevated.diagnostic or 'Unknown error'}",
            attempts=attempts,
        )
