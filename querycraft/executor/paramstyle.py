"""Translation of querycraft placeholders into a driver's paramstyle.

Dialects render either ordinal ``?`` markers or numbered ``$n`` markers.
PEP 249 drivers each accept one of five paramstyles; :func:`translate`
rewrites the statement and reorders the arguments for the target style.
Quoted literals and identifiers are copied untouched.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from querycraft.errors import DialectError

PARAMSTYLES = ("qmark", "numeric", "named", "format", "pyformat")

_QUOTES = ("'", '"', "`")


def _token(paramstyle: str, index: int) -> str:
    if paramstyle == "qmark":
        return "?"
    if paramstyle == "numeric":
        return f":{index}"
    if paramstyle == "named":
        return f":p{index}"
    return "%s"


def translate(sql: str, args: Sequence[Any], paramstyle: str) -> tuple[str, Any]:
    """Rewrite ``sql`` and ``args`` for a PEP 249 ``paramstyle``.

    Args:
        sql: Statement with ``?`` or ``$n`` markers.
        args: Positional arguments (``$n`` refers to ``args[n - 1]``).
        paramstyle: Target driver paramstyle.

    Returns:
        ``(sql, params)`` where ``params`` is a tuple, or a dict for
        ``named``.

    Raises:
        DialectError: If ``paramstyle`` is unknown.
    """
    if paramstyle not in PARAMSTYLES:
        raise DialectError(
            f"Unsupported paramstyle: '{paramstyle}'. Supported: {list(PARAMSTYLES)}.",
            name=paramstyle,
        )
    percent = paramstyle in ("format", "pyformat")
    out: list[str] = []
    params: list[Any] = []
    quote: str | None = None
    ordinal = 0
    marker = 0
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if percent and ch == "%":
            out.append("%%")
            i += 1
            continue
        if quote is not None:
            if ch == quote:
                quote = None
            out.append(ch)
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
            out.append(ch)
            i += 1
            continue
        if ch == "?":
            # Missing args are left for the driver to reject.
            if ordinal < len(args):
                params.append(args[ordinal])
            ordinal += 1
            marker += 1
            out.append(_token(paramstyle, marker))
            i += 1
            continue
        if ch == "$" and i + 1 < n and sql[i + 1].isdigit():
            j = i + 1
            while j < n and sql[j].isdigit():
                j += 1
            position = int(sql[i + 1 : j])
            if 0 < position <= len(args):
                params.append(args[position - 1])
            marker += 1
            out.append(_token(paramstyle, marker))
            i = j
            continue
        out.append(ch)
        i += 1

    if not marker and args:
        # Statement without markers (e.g. a raw query); pass args through.
        params = list(args)
    if paramstyle == "named":
        return "".join(out), {f"p{k}": v for k, v in enumerate(params, start=1)}
    return "".join(out), tuple(params)
