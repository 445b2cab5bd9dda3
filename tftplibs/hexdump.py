"""Hex and ASCII dump of binary frames."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

_BYTES_PER_LINE = 16
_PREFIX_MAX = 19


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def _format_line(head: str, chunk: bytes) -> str:
    parts = [head, " "]
    for col, byte in enumerate(chunk):
        if col == 8:
            parts.append("- ")
        parts.append(f"{byte:02X} ")
    for col in range(len(chunk) + 1, _BYTES_PER_LINE + 1):
        if col == 8:
            parts.append("  ")
        parts.append("   ")
    parts.append("  ")
    parts.append("".join(map(_printable, chunk)))
    return "".join(parts)


def hex_dump_lines(data: bytes, prefix: Optional[str] = None) -> list[str]:
    """Return the dump of ``data`` as lines of 16 bytes, without line endings.

    Each line starts with ``prefix`` (at most 19 characters) and shows the
    bytes in hexadecimal followed by their printable characters.
    """
    head = (prefix or "")[:_PREFIX_MAX]
    data = bytes(data)
    if not data:
        return [f"{head} Empty Message"]
    return [
        _format_line(head, data[start:start + _BYTES_PER_LINE])
        for start in range(0, len(data), _BYTES_PER_LINE)
    ]


def bin_dump(data: bytes, prefix: Optional[str] = None, out: Optional[TextIO] = None) -> None:
    """Write the dump of ``data`` to ``out`` (standard error by default)."""
    stream = out if out is not None else sys.stderr
    for line in hex_dump_lines(data, prefix):
        stream.write(line + "\n")
    stream.flush()