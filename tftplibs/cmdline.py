"""Command-line parsing for the server executable."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from typing import Optional

# The command line is copied into a fixed buffer before being split.
_MAX_COMMAND_LINE = 511

_WORD_PATTERN = re.compile(r'"([^"]*)"?|([^ "][^ ]*)')

_STANDARD_OPTIONS = {
    "s": "directory",
    "l": "log_file",
    "i": "ini_file",
}

_SERVICE_OPTIONS = {
    "h": "host",
    "p": "password",
}


@dataclass
class CommandLineOptions:
    """Settings that may be given on the command line."""

    directory: Optional[str] = None
    log_file: Optional[str] = None
    ini_file: Optional[str] = None
    host: Optional[str] = None
    password: Optional[str] = None


def split_command_line(line: str) -> list[str]:
    """Split a raw command line into words.

    Words are separated by spaces; a word starting with a double quote runs
    up to the next double quote (or the end of the line) and may contain
    spaces.
    """
    return [
        quoted if quoted is not None else plain
        for quoted, plain in (m.groups() for m in _WORD_PATTERN.finditer(line or ""))
    ]


def parse_command_line(line: str, service_edition: bool = False) -> CommandLineOptions:
    """Parse ``-s``, ``-l`` and ``-i`` options (plus ``-h`` and ``-p`` for the service edition).

    Only the character following the dash is significant. An option is taken
    into account only when a value follows it; a later option overrides an
    earlier one.
    """
    options_map = dict(_STANDARD_OPTIONS)
    if service_edition:
        options_map.update(_SERVICE_OPTIONS)

    options = CommandLineOptions()
    pending = deque(split_command_line((line or "")[:_MAX_COMMAND_LINE]))
    while pending:
        arg = pending.popleft()
        if arg.startswith("-") and pending:
            field = options_map.get(arg[1:2])
            if field is not None:
                setattr(options, field, pending.popleft())
    return options