"""Parser for ``lsof -iTCP -sTCP:LISTEN -n -P`` output.

Expected columns::

    COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
    sshd    412 root 3u IPv4 0x1    0t0      TCP  *:22 (LISTEN)

The NAME column starts at the ninth field and may carry a trailing
annotation such as ``(LISTEN)``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError

from portkiller.config import settings
from portkiller.models import INT32_MAX, INT32_MIN, PortRecord

logger = logging.getLogger(__name__)

MIN_FIELDS = 9
NAME_FIELD_INDEX = 8

# lsof escapes non-printable characters in COMMAND, a space becomes \x20
ESCAPED_SPACE = "\\x20"

_INT_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class ListeningSocket:
    """One parsed lsof line, before the owner uid is known."""

    port: int
    process_name: str
    pid: int
    bind_address: str

    @property
    def key(self) -> tuple[int, int]:
        return (self.port, self.pid)

    def to_record(self, owner_uid: int) -> PortRecord:
        return PortRecord(
            port=self.port,
            process_name=self.process_name,
            pid=self.pid,
            owner_uid=owner_uid,
            bind_address=self.bind_address,
        )


def _parse_int(text: str) -> int | None:
    if not _INT_RE.match(text):
        return None
    return int(text)


def _parse_pid(text: str) -> int | None:
    pid = _parse_int(text)
    if pid is None or not INT32_MIN <= pid <= INT32_MAX:
        return None
    return pid


def split_name_column(name: str) -> tuple[str, str] | None:
    """Split a NAME column into (address, port text).

    The port is whatever follows the last colon, cut at the first space.
    Returns None when there is no colon at all.
    """
    address, sep, rest = name.rpartition(":")
    if not sep:
        return None

    port_text = rest.split(" ", 1)[0]
    address = address.replace("[", "").replace("]", "")
    return (address or "*", port_text)


def parse_line(line: str) -> ListeningSocket | None:
    """Parse a single lsof data line, None if it is malformed."""
    parts = line.split()
    if len(parts) < MIN_FIELDS:
        return None

    process_name = parts[0].replace(ESCAPED_SPACE, " ")

    pid = _parse_pid(parts[1])
    if pid is None:
        return None

    split = split_name_column(" ".join(parts[NAME_FIELD_INDEX:]))
    if split is None:
        return None
    address, port_text = split

    port = _parse_int(port_text)
    if port is None or not 1 <= port <= 65535:
        return None

    return ListeningSocket(port=port, process_name=process_name, pid=pid, bind_address=address)


def parse_lsof_lines(output: str) -> list[ListeningSocket]:
    """Parse lsof output into de-duplicated sockets sorted by port.

    Never raises. Malformed lines are dropped. For duplicate (port, pid)
    pairs the first line wins; ties on port keep their input order.
    """
    sockets: list[ListeningSocket] = []
    seen: set[tuple[int, int]] = set()
    skipped = 0

    for line in output.splitlines()[1:]:  # Skip header
        if not line.strip():
            continue

        entry = parse_line(line)
        if entry is None:
            skipped += 1
            continue

        if entry.key in seen:
            continue
        seen.add(entry.key)
        sockets.append(entry)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed lsof lines")

    # list.sort is stable
    sockets.sort(key=lambda s: s.port)
    return sockets


def parse_lsof_output(
    output: str,
    owner_lookup: Callable[[int], int] | None = None,
    fallback_owner_uid: int | None = None,
) -> list[PortRecord]:
    """Parse lsof output straight into PortRecords.

    ``owner_lookup`` maps a pid to its owner uid; without one every record
    gets ``fallback_owner_uid`` (the configured fallback uid when
    omitted). A lookup that raises or returns an invalid
    uid also degrades to the fallback.
    """
    if fallback_owner_uid is None:
        fallback_owner_uid = settings.fallback_owner_uid

    records: list[PortRecord] = []
    for entry in parse_lsof_lines(output):
        uid = fallback_owner_uid
        if owner_lookup is not None:
            try:
                uid = owner_lookup(entry.pid)
            except Exception as e:
                logger.debug(f"Owner lookup failed: {e}", extra={"pid": entry.pid})
                uid = fallback_owner_uid
        try:
            records.append(entry.to_record(uid))
        except ValidationError:
            records.append(entry.to_record(fallback_owner_uid))
    return records
