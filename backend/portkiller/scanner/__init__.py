"""Listening port discovery.

Provides:
- lsof / ps invocation (ListingSource)
- lsof output parsing with de-duplication and ordering
- PortScanner, which combines both into a ScanResult
"""

from portkiller.scanner.parser import (
    ListeningSocket,
    parse_line,
    parse_lsof_lines,
    parse_lsof_output,
)
from portkiller.scanner.port_scanner import PortScanner
from portkiller.scanner.source import ListingSource

__all__ = [
    "ListeningSocket",
    "ListingSource",
    "PortScanner",
    "parse_line",
    "parse_lsof_lines",
    "parse_lsof_output",
]
