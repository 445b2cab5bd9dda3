"""Settings kept in an INI file, falling back to the Windows registry."""

from __future__ import annotations

import enum
import os
import re
from typing import Optional, Union

try:
    import winreg
except ImportError:  # not on Windows
    winreg = None

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"
_MAX_SECTION = 63
_SECTION_LINE = re.compile(r"^\s*\[([^\]]*)\]")
_ATOI = re.compile(r"^\s*([+-]?\d+)")


class ValueType(enum.IntEnum):
    """Kinds of stored values, numbered as in the registry."""

    SZ = 1
    DWORD = 4


def _section_name(reg_path: str) -> str:
    return reg_path.rsplit("\\", 1)[-1]


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _to_signed32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def _read_lines(ini_file: Union[str, os.PathLike]) -> list[str]:
    with open(ini_file, encoding=_ENCODING, errors=_ERRORS) as handle:
        return handle.read().splitlines()


def _split_entry(line: str) -> Optional[tuple[str, str]]:
    stripped = line.strip()
    if not stripped or stripped.startswith(";") or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    return key.strip(), value.strip()


def _section_entries(lines: list[str], section: str) -> dict[str, str]:
    entries: dict[str, str] = {}
    current = None
    for line in lines:
        header = _SECTION_LINE.match(line)
        if header:
            current = header.group(1).strip().lower()
            continue
        if current != section.lower():
            continue
        entry = _split_entry(line)
        if entry is not None:
            entries.setdefault(entry[0].lower(), entry[1])
    return entries


def _convert(value: Union[str, int], value_type: ValueType) -> Union[str, int]:
    if value_type == ValueType.DWORD:
        return value if isinstance(value, int) else _atoi(value)
    return value if isinstance(value, str) else str(value)


def _read_registry(reg_path: str, key: str, value_type: ValueType):
    if winreg is None:
        return None
    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, reg_path, 0, winreg.KEY_READ) as handle:
            value, _ = winreg.QueryValueEx(handle, key)
    except OSError:
        return None
    if not isinstance(value, (str, int)):
        return None
    return _convert(value, value_type)


def read_key(
    reg_path: str,
    key: str,
    value_type: ValueType = ValueType.SZ,
    ini_file: Union[str, os.PathLike, None] = None,
) -> Union[str, int, None]:
    """Return the setting ``key``, or None when it is not set.

    The INI section is the last backslash-separated component of
    ``reg_path``. A key present in the INI file with an empty value counts as
    unset; a key absent from it is looked up in the registry under
    ``HKEY_LOCAL_MACHINE\\<reg_path>`` where a registry exists.
    """
    value_type = ValueType(value_type)
    section = _section_name(reg_path)[:_MAX_SECTION]
    lines: list[str] = []
    if ini_file is not None:
        try:
            lines = _read_lines(ini_file)
        except OSError:
            lines = []
    entries = _section_entries(lines, section)
    found = entries.get(key.lower())
    if found:
        return _convert(found, value_type)
    if found is not None:
        return None
    return _read_registry(reg_path, key, value_type)


def _format_value(value: Union[str, int]) -> tuple[str, ValueType]:
    if isinstance(value, int):
        return str(_to_signed32(int(value))), ValueType.DWORD
    return str(value), ValueType.SZ


def _write_ini(ini_file: Union[str, os.PathLike], section: str, key: str, text: str) -> None:
    lines = _read_lines(ini_file)
    new_line = f"{key}={text}"
    in_section = False
    section_end = None
    for index, line in enumerate(lines):
        header = _SECTION_LINE.match(line)
        if header:
            if in_section:
                break
            in_section = header.group(1).strip().lower() == section.lower()
            if in_section:
                section_end = index + 1
            continue
        if not in_section:
            continue
        entry = _split_entry(line)
        if entry is not None and entry[0].lower() == key.lower():
            lines[index] = new_line
            break
        if line.strip():
            section_end = index + 1
    else:
        if section_end is None:
            if lines and lines[-1].strip():
                lines.append("")
            lines.extend([f"[{section}]", new_line])
        else:
            lines.insert(section_end, new_line)
    if in_section and section_end is not None and new_line not in lines:
        lines.insert(section_end, new_line)
    with open(ini_file, "w", encoding=_ENCODING, errors=_ERRORS) as handle:
        handle.write("\n".join(lines) + "\n")


def _write_registry(reg_path: str, key: str, value: Union[str, int], value_type: ValueType) -> None:
    if winreg is None:
        raise OSError(f"no INI file and no registry to store {key!r}")
    with winreg.CreateKeyEx(winreg.HKEY_LOCAL_MACHINE, reg_path, 0, winreg.KEY_WRITE) as handle:
        if value_type == ValueType.DWORD:
            winreg.SetValueEx(handle, key, 0, winreg.REG_DWORD, int(value) & 0xFFFFFFFF)
        else:
            winreg.SetValueEx(handle, key, 0, winreg.REG_SZ, str(value))


def save_key(
    reg_path: str,
    key: str,
    value: Union[str, int],
    ini_file: Union[str, os.PathLike, None] = None,
) -> None:
    """Store ``value`` under ``key``.

    Integers are stored as 32-bit numbers, anything else as text. The INI
    file is used when it exists, otherwise the registry; :class:`OSError` is
    raised when neither can be written.
    """
    text, value_type = _format_value(value)
    if ini_file is not None and os.path.isfile(ini_file):
        _write_ini(ini_file, _section_name(reg_path), key, text)
        return
    _write_registry(reg_path, key, value, value_type)