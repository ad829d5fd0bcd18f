"""Bindable value kinds and row normalisation helpers.

``SQLValue`` is the closed set of Python types querycraft expects drivers to
bind.  Builders never validate arguments against it; it documents the
contract and drives :func:`format_arg` for debug output.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Union

from querycraft.dialect.base import replace_markers

SQLValue = Union[None, bool, int, float, Decimal, str, bytes, datetime, date, time]

#: Concrete types accepted as a single bindable scalar.
SCALAR_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    bytearray,
    memoryview,
    datetime,
    date,
    time,
)


def is_scalar(value: Any) -> bool:
    """Return True when ``value`` binds as a single SQL parameter."""
    return value is None or isinstance(value, SCALAR_TYPES)


def normalize_value(value: Any) -> Any:
    """Decode valid UTF-8 byte strings to ``str``; return other values as is."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw
    return value


def normalize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Return a plain dict copy of ``row`` with byte columns decoded."""
    return {key: normalize_value(value) for key, value in row.items()}


def format_arg(value: Any) -> str:
    """Render ``value`` as an SQL literal for display only.

    The output is never sent to the database.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"X'{bytes(value).hex()}'"
    if isinstance(value, datetime):
        return f"'{value.isoformat(sep=' ')}'"
    if isinstance(value, (date, time)):
        return f"'{value.isoformat()}'"
    text = str(value).replace("'", "''")
    return f"'{text}'"


def inline_args(sql: str, args: Sequence[Any]) -> str:
    """Substitute each neutral ``?`` marker in ``sql`` with its formatted arg.

    Markers without a matching argument are left in place.
    """

    def _literal(n: int) -> str:
        if n <= len(args):
            return format_arg(args[n - 1])
        return "?"

    return replace_markers(sql, _literal)
