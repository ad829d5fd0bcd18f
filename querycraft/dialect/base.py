"""Dialect abstraction: the Dialect ABC and the placeholder scanner.

The Template Method pattern (GoF) is used:
- ``Dialect`` defines the rendering steps every builder relies on
  (identifier quoting, placeholders, LIMIT/OFFSET, ORDER BY, conflict
  clauses) with ANSI defaults where one exists.
- ``MySQLDialect``, ``PostgresDialect`` and ``SQLiteDialect`` override the
  engine-specific steps.

Builders never emit a dialect placeholder directly.  They write the neutral
``?`` marker into every fragment and hand the finished statement to
:meth:`Dialect.rebind`, which numbers the markers for engines that need it.
Dialects hold no mutable state and may be shared freely across threads.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import ClassVar

from querycraft.errors import DialectError

#: Neutral placeholder marker written by every builder.
BIND = "?"

_QUOTES = ("'", '"', "`")


def replace_markers(sql: str, make: Callable[[int], str], marker: str = BIND) -> str:
    """Replace every ``marker`` outside quoted text with ``make(n)``.

    ``n`` counts markers from 1, left to right.  Single-quoted literals,
    double-quoted and backtick-quoted identifiers are copied untouched.

    Args:
        sql: Statement text containing neutral markers.
        make: Callable producing the replacement for the n-th marker.
        marker: The single-character marker to replace.

    Returns:
        The rewritten statement.
    """
    out: list[str] = []
    quote: str | None = None
    index = 0
    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
            out.append(ch)
        elif ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == marker:
            index += 1
            out.append(make(index))
        else:
            out.append(ch)
    return "".join(out)


def count_markers(sql: str, marker: str = BIND) -> int:
    """Return the number of ``marker`` occurrences outside quoted text."""
    counter = [0]

    def _bump(n: int) -> str:
        counter[0] = n
        return marker

    replace_markers(sql, _bump, marker)
    return counter[0]


class Dialect(ABC):
    """Abstract base for database-specific SQL syntax.

    Subclasses set ``quote_char`` and implement ``name``, ``placeholder`` and
    the conflict-clause renderers; everything else has a shared default.
    """

    #: Identifier quote character.
    quote_char: ClassVar[str] = '"'

    #: True when every placeholder is the same token (``?``); False when the
    #: engine numbers them (``$1``, ``$2`` ...).
    ordinal_placeholders: ClassVar[bool] = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the canonical dialect name (e.g. ``'mysql'``)."""

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the placeholder token for the ``index``-th argument (1-based).

        Args:
            index: Position of the argument in the flat argument list.

        Returns:
            Dialect-specific placeholder string.
        """

    @abstractmethod
    def on_conflict_do_nothing(self, conflict_columns: Sequence[str]) -> str:
        """Return the trailing clause that ignores conflicting rows, or ``""``.

        Args:
            conflict_columns: Columns that identify a conflict (may be empty).
        """

    @abstractmethod
    def on_conflict_update(
        self,
        conflict_columns: Sequence[str],
        updatable: Sequence[str],
        requested: Sequence[str],
        excluded: Sequence[str],
    ) -> str:
        """Return the conflict clause that updates existing rows.

        Args:
            conflict_columns: Columns that identify a conflict.
            updatable: Every column present in the INSERT.
            requested: Columns explicitly requested for update.
            excluded: Columns explicitly excluded from update.

        Returns:
            The clause, referencing the incoming row's values.
        """

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Return ``name`` wrapped in the quote character.

        Embedded quote characters are doubled.  Apply exactly once per
        identifier reference.
        """
        q = self.quote_char
        escaped = name.replace(q, q + q)
        return f"{q}{escaped}{q}"

    def quote_column(self, ref: str) -> str:
        """Quote a possibly table-qualified column reference.

        ``*``, expressions containing ``(`` and references already starting
        with the quote character are returned unchanged.  Dotted references
        are quoted part by part; a trailing ``*`` part is kept bare.
        """
        ref = ref.strip()
        if ref == "*" or "(" in ref or ref.startswith(self.quote_char):
            return ref
        parts = ref.split(".")
        return ".".join(p if p == "*" else self.quote_identifier(p) for p in parts)

    # ------------------------------------------------------------------
    # Placeholders
    # ------------------------------------------------------------------

    def rebind(self, sql: str) -> str:
        """Turn neutral ``?`` markers into this dialect's placeholders."""
        if self.ordinal_placeholders:
            return sql
        return replace_markers(sql, self.placeholder)

    # ------------------------------------------------------------------
    # SELECT helpers
    # ------------------------------------------------------------------

    def limit_clause(self, limit: int) -> str:
        return f"LIMIT {int(limit)}"

    def offset_clause(self, offset: int) -> str:
        return f"OFFSET {int(offset)}"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        """Render the LIMIT / OFFSET tail (``""`` when neither is set)."""
        parts: list[str] = []
        if limit is not None:
            parts.append(self.limit_clause(limit))
        if offset is not None:
            parts.append(self.offset_clause(offset))
        return " ".join(parts)

    def order_by(self, column: str, desc: bool = False) -> str:
        """Render one ORDER BY item (without the ``ORDER BY`` keyword)."""
        quoted = self.quote_column(column)
        return f"{quoted} DESC" if desc else quoted

    def explain(self, sql: str) -> str:
        return f"EXPLAIN {sql}"

    # ------------------------------------------------------------------
    # INSERT helpers
    # ------------------------------------------------------------------

    def insert_keyword(self, ignore: bool = False) -> str:
        """Return the statement keyword for INSERT (or its ignore form)."""
        return "INSERT INTO"

    def replace_keyword(self) -> str:
        """Return the keyword of a delete-then-insert REPLACE statement.

        Raises:
            DialectError: If the engine has no REPLACE statement.
        """
        raise DialectError(
            f"The {self.name} dialect has no REPLACE statement; use an upsert instead.",
            name=self.name,
        )

    def update_limit(self, limit: int) -> str:
        """Render the LIMIT tail of an UPDATE."""
        return self.limit_clause(limit)

    def delete_limit(self, limit: int) -> str:
        """Render the LIMIT tail of a DELETE."""
        return self.limit_clause(limit)

    @staticmethod
    def update_columns(
        updatable: Sequence[str],
        requested: Sequence[str],
        excluded: Sequence[str],
    ) -> list[str]:
        """Select the columns a conflict clause assigns.

        The result is ``(updatable ∩ requested) ∪ (updatable \\ excluded)`` in
        ``updatable`` order.  With only ``requested`` given the difference
        term is skipped; with neither given every updatable column is kept.
        """
        if not requested and not excluded:
            return list(updatable)
        wanted = set(requested)
        skipped = set(excluded)
        result: list[str] = []
        for col in updatable:
            if col in wanted or (excluded and col not in skipped):
                result.append(col)
        return result
