"""
TOML-only IO with strict typing.

Constraints:
- Reading: use tomllib
- Writing: a small deterministic serializer for the value types we emit
  (scalars, scalar lists such as loss curves, nested tables)
- No Any / no untyped dicts
"""

from __future__ import annotations

import math
import tomllib
from pathlib import Path
from typing import TypeGuard, cast

type TomlScalar = str | int | float | bool
type TomlValue = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
type TomlTable = dict[str, TomlValue]


def load_toml(path: Path) -> TomlTable:
    """Load a TOML file into a strictly-typed nested dictionary.

    Raises:
        FileNotFoundError: If path does not exist.
        ValueError: If parsed content contains unsupported types.
    """
    raw = cast(object, tomllib.loads(path.read_text(encoding="utf-8")))
    if not _is_table(raw):
        raise ValueError("TOML root must be a table with string keys.")
    return _checked_table(raw)


def dump_toml(data: TomlTable) -> str:
    """Serialize a TOML table with sorted keys, scalars before subtables.

    Raises:
        ValueError: If data contains unsupported types.
    """
    return "\n".join(_table_lines(data, header=None)) + "\n"


def save_toml(path: Path, data: TomlTable) -> None:
    """Write TOML to disk with stable ordering."""
    path.write_text(dump_toml(data), encoding="utf-8")


def _is_table(value: object) -> TypeGuard[dict[str, object]]:
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)


def _checked_table(raw: dict[str, object]) -> TomlTable:
    return {key: _checked_value(value) for key, value in raw.items()}


def _checked_value(value: object) -> TomlValue:
    """Validate one parsed value.

    Raises:
        ValueError: If the value (or a list item) has an unsupported type.
    """
    if isinstance(value, str | int | float | bool):
        return value
    if _is_table(value):
        return _checked_table(value)
    if isinstance(value, list):
        items = cast(list[object], value)
        if any(isinstance(item, dict) for item in items):
            raise ValueError("dict values in lists are not supported")
        return [_checked_value(item) for item in items]
    raise ValueError(f"unsupported TOML value type: {type(value)}")


def _table_lines(table: TomlTable, header: str | None) -> list[str]:
    lines: list[str] = [] if header is None else [f"[{header}]"]
    subtables = sorted(k for k, v in table.items() if isinstance(v, dict))
    for key in sorted(k for k in table if k not in subtables):
        lines.append(f"{key} = {_literal(table[key])}")
    for key in subtables:
        if lines:
            lines.append("")
        name = key if header is None else f"{header}.{key}"
        lines.extend(_table_lines(cast(TomlTable, table[key]), header=name))
    return lines


def _literal(value: TomlValue) -> str:
    """Render a TOML literal.

    Raises:
        ValueError: If the value type is unsupported.
    """
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return repr(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        return "[" + ", ".join(_literal(item) for item in value) + "]"
    raise ValueError("unsupported TOML value type")
