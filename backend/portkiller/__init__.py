"""PortKiller - find the processes listening on TCP ports and stop them safely."""

__version__ = "0.1.0"
