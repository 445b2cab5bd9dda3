"""Directory listing in the tab-separated form used by the server."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Iterator

_MAX_NAME = 62
_DATE_FORMAT = "%d/%m/%Y"


def is_valid_directory(path: str | os.PathLike) -> bool:
    """Return True if ``path`` names an existing directory."""
    return os.path.isdir(path)


def _creation_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", stat.st_ctime)


def scan_dir(directory: str | os.PathLike) -> Iterator[str]:
    """Yield one ``name<TAB>date<TAB>size`` line per file in ``directory``.

    Subdirectories are skipped. Names are cut to 62 characters, the date is
    the creation date as dd/mm/yyyy and the size is the low 32 bits of the
    file size. A missing directory yields nothing.
    """
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return
    for entry in entries:
        try:
            if entry.is_dir():
                continue
            stat = entry.stat()
        except OSError:
            continue
        date = datetime.fromtimestamp(_creation_time(stat)).strftime(_DATE_FORMAT)[:10]
        size = stat.st_size & 0xFFFFFFFF
        yield f"{entry.name[:_MAX_NAME]}\t{date}\t{size}"