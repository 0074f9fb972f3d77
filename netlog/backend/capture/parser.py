"""
capture/parser.py

Converts one line of tcpdump-style text output into a FlowRecord.

Expected shape (tokens separated by single spaces):

    13:00:00.000000 IP 10.0.0.1.443 > 10.0.0.2.51000: Flags [P.], ..., length 512
    ^0              ^1 ^2           ^3 ^4              ...                   ^last

Design principles:
  - Pure and synchronous: no I/O, no logging on the hot path.
  - Never raises. Any deviation from the expected shape returns None so
    the caller can advance to the next line.
  - Permissive about the overall line grammar, strict about field shape:
    addresses must split into at least five dot-separated parts (four
    address parts + port), ports and the trailing length must be decimal
    integers, and the length must be positive.
"""

from __future__ import annotations

import re
import time

from ..models import FlowRecord

_DECIMAL = re.compile(r"([+-]?)([0-9]+)")

# Values must fit a signed 64-bit SQLite INTEGER, as with a strict Atoi.
_INT64_MAX = 2**63 - 1
_INT64_DIGITS = 19

_SRC_INDEX = 2
_DST_INDEX = 4


def _to_int64(token: str, signed: bool = True) -> int | None:
    """Parse a decimal token into a signed 64-bit value, or None."""
    m = _DECIMAL.fullmatch(token)
    if m is None:
        return None
    sign, digits = m.groups()
    if sign and not signed:
        return None
    digits = digits.lstrip("0") or "0"
    if len(digits) > _INT64_DIGITS:
        return None
    n = int(digits)
    if n > _INT64_MAX + (1 if sign == "-" else 0):
        return None
    return -n if sign == "-" else n


def _split_endpoint(token: str) -> tuple[str, int] | None:
    """
    Split 'a.b.c.d.port' into ('a.b.c.d', port).

    Extra trailing parts beyond the port are ignored.
    """
    parts = token.split(".")
    if len(parts) < 5:
        return None
    port = _to_int64(parts[4], signed=False)
    if port is None:
        return None
    return ".".join(parts[:4]), port


def _parse_length(token: str) -> int | None:
    n = _to_int64(token)
    if n is None:
        return None
    return n if n > 0 else None


def parse_line(line: str, observed_at: float | None = None) -> FlowRecord | None:
    """
    Parse a capture line into a FlowRecord.

    Args:
        line:        One line of capture output, with or without its terminator.
        observed_at: Timestamp to stamp on the record. Defaults to time.time().

    Returns:
        FlowRecord on success, None if the line does not describe a flow.
    """
    words = line.rstrip("\r\n").split(" ")

    if len(words) <= _SRC_INDEX:
        return None
    src = _split_endpoint(words[_SRC_INDEX])
    if src is None:
        return None

    if len(words) <= _DST_INDEX:
        return None
    # destination token carries a trailing ':'
    dst = _split_endpoint(words[_DST_INDEX][:-1])
    if dst is None:
        return None

    byte_length = _parse_length(words[-1])
    if byte_length is None:
        return None

    return FlowRecord(
        source_address=src[0],
        source_port=src[1],
        destination_address=dst[0],
        destination_port=dst[1],
        byte_length=byte_length,
        observed_at=time.time() if observed_at is None else observed_at,
    )
