"""Signal delivery with privileged fallback."""

from portkiller.termination.killer import ProcessKiller, resolve_elevation_method

__all__ = [
    "ProcessKiller",
    "resolve_elevation_method",
]
