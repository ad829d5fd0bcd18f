"""Clause helpers shared by the statement builders.

Table references and join conditions arrive as free text.  These helpers
quote the identifiers inside them once, leaving keywords, literals,
placeholders and function names alone.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from querycraft.dialect.base import Dialect

#: Words never quoted inside a join condition.
CONDITION_KEYWORDS = frozenset(
    {"AND", "OR", "ON", "AS", "NOT", "NULL", "IS", "IN", "LIKE", "BETWEEN", "TRUE", "FALSE"}
)

_TOKEN = re.compile(
    r"""
      (?P<string>'(?:[^']|'')*')
    | (?P<quoted>"(?:[^"]|"")*"|`(?:[^`]|``)*`)
    | (?P<number>\d+(?:\.\d+)?)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_$]*(?:\.(?:[A-Za-z_][A-Za-z0-9_$]*|\*))*)
    """,
    re.VERBOSE,
)


def split_table(ref: str) -> tuple[str, str]:
    """Split ``"orders o"`` / ``"orders AS o"`` into ``(table, alias_part)``.

    The alias part keeps the ``AS`` keyword as written; it is ``""`` when
    ``ref`` has no alias.
    """
    tokens = ref.split()
    if len(tokens) == 2:
        return tokens[0], tokens[1]
    if len(tokens) == 3 and tokens[1].upper() == "AS":
        return tokens[0], f"{tokens[1]} {tokens[2]}"
    return ref.strip(), ""


def quote_table(dialect: Dialect, ref: str) -> str:
    """Quote the base table of ``ref`` and append its alias verbatim.

    Derived tables (anything containing ``(``) are returned unchanged.
    """
    if "(" in ref:
        return ref.strip()
    table, alias = split_table(ref)
    quoted = dialect.quote_column(table)
    return f"{quoted} {alias}" if alias else quoted


def quote_condition(dialect: Dialect, condition: str) -> str:
    """Quote every bare identifier in a join condition.

    ``"u.id = o.user_id"`` becomes ``"`u`.`id` = `o`.`user_id`"`` for MySQL.
    """

    def _replace(match: re.Match[str]) -> str:
        ident = match.group("ident")
        if ident is None:
            return match.group(0)
        if ident.upper() in CONDITION_KEYWORDS:
            return ident
        if condition[match.end():].lstrip().startswith("("):
            return ident
        return dialect.quote_column(ident)

    return _TOKEN.sub(_replace, condition)


@dataclass(frozen=True)
class Join:
    """One rendered-on-demand JOIN clause.

    Attributes:
        kind: Join keyword (``"INNER JOIN"``, ``"LEFT JOIN"`` ...).
        table: Table reference as given, alias included.
        condition: ON condition as given; ``""`` for CROSS JOIN.
        args: Arguments for markers inside the condition.
    """

    kind: str
    table: str
    condition: str = ""
    args: tuple[Any, ...] = ()

    def render(self, dialect: Dialect) -> str:
        table = quote_table(dialect, self.table)
        if not self.condition:
            return f"{self.kind} {table}"
        return f"{self.kind} {table} ON {quote_condition(dialect, self.condition)}"
