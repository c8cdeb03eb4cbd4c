"""External command helpers for PortKiller."""

from portkiller.tools.shell import CommandResult, CommandRunner, run_command

__all__ = [
    "CommandResult",
    "CommandRunner",
    "run_command",
]
