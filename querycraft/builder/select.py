"""SELECT statement builder."""
from __future__ import annotations

import math
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from querycraft.builder.base import Builder
from querycraft.builder.clauses import Join, quote_table
from querycraft.builder.conditions import AND, OR, ConditionAssembler, ConditionMixin
from querycraft.context import ExecutionContext
from querycraft.dialect.base import Dialect
from querycraft.errors import NoRowsError
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.records import decode_record
from querycraft.schema.results import KeysetPaginationResult, PaginationResult

#: Column alias used by the aggregate helpers.
AGGREGATE_ALIAS = "aggregate"

#: Alias of the derived table grouped queries are counted over.
DERIVED_ALIAS = "grouped"


def _key(column: str) -> str:
    """Result-row key of a possibly table-qualified column."""
    return column.rsplit(".", 1)[-1]


def _first_value(row: dict[str, Any]) -> Any:
    return next(iter(row.values()), None)


class Select(ConditionMixin, Builder):
    """Fluent SELECT builder.

    Clause order: ``SELECT`` → ``FROM`` → joins → ``WHERE`` → ``GROUP BY`` →
    ``HAVING`` → ``ORDER BY`` → ``LIMIT`` / ``OFFSET``.  Selected columns are
    emitted verbatim, so expressions and aliases may be passed as written.

    Example::

        users = (
            qc.select("id", "name")
            .from_("users u")
            .left_join("orders o", "o.user_id = u.id")
            .where_eq("u.status", "active")
            .order_by_desc("u.created_at")
            .limit(10)
            .rows()
        )
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect,
        logger: QueryLogger | None = None,
        print_sql: bool = False,
        columns: tuple[str, ...] | list[str] = (),
    ) -> None:
        super().__init__(executor, dialect, logger, print_sql)
        self._table = ""
        self._columns: list[str] = list(columns)
        self._joins: list[Join] = []
        self._where = ConditionAssembler()
        self._group_by: list[str] = []
        self._having = ConditionAssembler()
        self._order_by: list[str] = []
        self._limit: int | None = None
        self._offset: int | None = None

    def _conditions(self) -> ConditionAssembler:
        return self._where

    # ------------------------------------------------------------------
    # Clauses
    # ------------------------------------------------------------------

    def from_(self, table: str) -> Select:
        """Set the source table; ``"orders o"`` and ``"orders AS o"`` carry an alias."""
        self._table = table
        return self

    def columns(self, *columns: str) -> Select:
        self._columns = list(columns)
        return self

    def _join(self, kind: str, table: str, condition: str, args: tuple[Any, ...]) -> Select:
        self._joins.append(Join(kind=kind, table=table, condition=condition, args=args))
        return self

    def join(self, table: str, condition: str, *args: Any) -> Select:
        """Add an INNER JOIN; identifiers in ``condition`` are quoted."""
        return self._join("INNER JOIN", table, condition, args)

    def inner_join(self, table: str, condition: str, *args: Any) -> Select:
        return self._join("INNER JOIN", table, condition, args)

    def left_join(self, table: str, condition: str, *args: Any) -> Select:
        return self._join("LEFT JOIN", table, condition, args)

    def right_join(self, table: str, condition: str, *args: Any) -> Select:
        return self._join("RIGHT JOIN", table, condition, args)

    def outer_join(self, table: str, condition: str, *args: Any) -> Select:
        return self._join("FULL OUTER JOIN", table, condition, args)

    def cross_join(self, table: str) -> Select:
        return self._join("CROSS JOIN", table, "", ())

    def order_by(self, column: str) -> Select:
        self._order_by.append(self._dialect.order_by(column))
        return self

    def order_by_desc(self, column: str) -> Select:
        self._order_by.append(self._dialect.order_by(column, desc=True))
        return self

    def order_by_raw(self, expression: str) -> Select:
        self._order_by.append(expression)
        return self

    def group_by(self, *columns: str) -> Select:
        self._group_by.extend(columns)
        return self

    def having(self, condition: str, *args: Any) -> Select:
        """Add a raw HAVING predicate joined with AND."""
        self._having.add(condition, args, AND)
        return self

    def or_having(self, condition: str, *args: Any) -> Select:
        self._having.add(condition, args, OR)
        return self

    def limit(self, limit: int) -> Select:
        self._limit = limit
        return self

    def offset(self, offset: int) -> Select:
        self._offset = offset
        return self

    def page(self, page: int, per_page: int) -> Select:
        """Set LIMIT / OFFSET for a 1-based page number."""
        page = max(page, 1)
        self._limit = per_page
        self._offset = (page - 1) * per_page
        return self

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def build(self) -> tuple[str, list[Any]]:
        d = self._dialect
        args: list[Any] = []
        parts = [f"SELECT {', '.join(self._columns) if self._columns else '*'}"]
        if self._table:
            parts.append(f"FROM {quote_table(d, self._table)}")
        for join in self._joins:
            parts.append(join.render(d))
            args.extend(join.args)

        where_sql, where_args = self._where.render()
        if where_sql:
            parts.append(f"WHERE {where_sql}")
            args.extend(where_args)
        if self._group_by:
            parts.append("GROUP BY " + ", ".join(d.quote_column(c) for c in self._group_by))
        having_sql, having_args = self._having.render()
        if having_sql:
            parts.append(f"HAVING {having_sql}")
            args.extend(having_args)
        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))
        tail = d.limit_offset(self._limit, self._offset)
        if tail:
            parts.append(tail)
        return " ".join(parts), args

    @contextmanager
    def _scoped(self, columns: list[str], keep_order: bool = True) -> Iterator[None]:
        """Temporarily replace the column list (and optionally ORDER BY)."""
        saved_columns, saved_order = self._columns, self._order_by
        self._columns = columns
        if not keep_order:
            self._order_by = []
        try:
            yield
        finally:
            self._columns, self._order_by = saved_columns, saved_order

    # ------------------------------------------------------------------
    # Terminals
    # ------------------------------------------------------------------

    def one(self, model: type | None = None, ctx: ExecutionContext | None = None) -> Any:
        """Return the first row, decoded into ``model`` when given.

        Raises:
            NoRowsError: If the query returned no rows.
        """
        if model is None:
            return self._fetch_row(ctx)
        return self._fetch_one(model, ctx)

    def all(self, model: type | None = None, ctx: ExecutionContext | None = None) -> list[Any]:
        """Return every row, decoded into ``model`` when given."""
        if model is None:
            return self._fetch_rows(ctx)
        return self._fetch_all(model, ctx)

    def row(self, ctx: ExecutionContext | None = None) -> dict[str, Any]:
        return self._fetch_row(ctx)

    def rows(self, ctx: ExecutionContext | None = None) -> list[dict[str, Any]]:
        return self._fetch_rows(ctx)

    def rows_map_key(
        self, column: str, ctx: ExecutionContext | None = None
    ) -> dict[Any, dict[str, Any]]:
        """Return rows keyed by ``column``'s value; later duplicates win."""
        key = _key(column)
        return {row[key]: row for row in self._fetch_rows(ctx)}

    def field(self, column: str, ctx: ExecutionContext | None = None) -> Any:
        """Return ``column`` of the first row.

        Raises:
            NoRowsError: If the query returned no rows.
        """
        with self._scoped([column]):
            row = self._fetch_row(ctx)
        return _first_value(row)

    def pluck(self, column: str, ctx: ExecutionContext | None = None) -> list[Any]:
        """Return ``column`` from every row."""
        with self._scoped([column]):
            rows = self._fetch_rows(ctx)
        return [_first_value(row) for row in rows]

    def _aggregate(self, expression: str, ctx: ExecutionContext | None) -> Any:
        alias = self._dialect.quote_identifier(AGGREGATE_ALIAS)
        with self._scoped([f"{expression} AS {alias}"], keep_order=False):
            try:
                row = self._fetch_row(ctx)
            except NoRowsError:
                return None
        return row.get(AGGREGATE_ALIAS)

    def count(self, ctx: ExecutionContext | None = None) -> int:
        """Count result rows.

        Grouped queries count their groups by wrapping the full statement in a
        derived table.
        """
        if self._group_by or self._having:
            return self._count_rows(ctx)
        return int(self._aggregate("COUNT(*)", ctx) or 0)

    def _count_rows(self, ctx: ExecutionContext | None) -> int:
        d = self._dialect
        sql, args = self.build()
        alias = d.quote_identifier(AGGREGATE_ALIAS)
        derived = d.quote_identifier(DERIVED_ALIAS)
        statement = f"SELECT COUNT(*) AS {alias} FROM ({sql}) AS {derived}"
        row = self._fetch_row(ctx, (statement, args))
        return int(row.get(AGGREGATE_ALIAS) or 0)

    def count_column(self, column: str, ctx: ExecutionContext | None = None) -> int:
        """Count non-NULL values of ``column``."""
        expr = f"COUNT({self._dialect.quote_column(column)})"
        return int(self._aggregate(expr, ctx) or 0)

    def sum(self, column: str, ctx: ExecutionContext | None = None) -> float:
        """Sum ``column``; ``0.0`` when there is nothing to sum."""
        value = self._aggregate(f"SUM({self._dialect.quote_column(column)})", ctx)
        return float(value) if value is not None else 0.0

    def avg(self, column: str, ctx: ExecutionContext | None = None) -> float:
        value = self._aggregate(f"AVG({self._dialect.quote_column(column)})", ctx)
        return float(value) if value is not None else 0.0

    def max(self, column: str, ctx: ExecutionContext | None = None) -> Any:
        return self._aggregate(f"MAX({self._dialect.quote_column(column)})", ctx)

    def min(self, column: str, ctx: ExecutionContext | None = None) -> Any:
        return self._aggregate(f"MIN({self._dialect.quote_column(column)})", ctx)

    def exists(self, ctx: ExecutionContext | None = None) -> bool:
        """Return whether the query matches at least one row."""
        limited = self.clone().limit(1)
        sql, args = limited.build()
        alias = self._dialect.quote_identifier("exists")
        row = self._fetch_row(ctx, (f"SELECT EXISTS({sql}) AS {alias}", args))
        return bool(row.get("exists"))

    def explain(self, ctx: ExecutionContext | None = None) -> list[dict[str, Any]]:
        """Return the engine's query plan rows."""
        sql, args = self.build()
        return self._fetch_rows(ctx, (self._dialect.explain(sql), args))

    def paginate(
        self,
        page: int,
        per_page: int,
        model: type | None = None,
        ctx: ExecutionContext | None = None,
    ) -> PaginationResult:
        """Run one page of the query plus a count of the whole result.

        Sets LIMIT / OFFSET on this builder.

        Args:
            page: 1-based page number; values below 1 mean page 1.
            per_page: Page size.
            model: Record type to decode rows into.
            ctx: Execution context.

        Raises:
            ValueError: If ``per_page`` is below 1.
        """
        if per_page < 1:
            raise ValueError(f"per_page must be at least 1, got {per_page}.")
        page = max(page, 1)

        counter = self.clone()
        counter._limit = None
        counter._offset = None
        total = counter.count(ctx)

        self.page(page, per_page)
        data = self.all(model, ctx)

        if data:
            first = (page - 1) * per_page + 1
            last = first + len(data) - 1
        else:
            first = last = 0
        return PaginationResult(
            data=data,
            total=total,
            per_page=per_page,
            current_page=page,
            last_page=math.ceil(total / per_page),
            from_=first,
            to=last,
        )

    def keyset_paginate(
        self,
        column: str,
        last_value: Any,
        per_page: int,
        direction: str = "asc",
        model: type | None = None,
        ctx: ExecutionContext | None = None,
    ) -> KeysetPaginationResult:
        """Return the page after ``last_value`` ordered by ``column``.

        The query runs on a clone; this builder is left unchanged.

        Args:
            column: Monotonic key column.
            last_value: Cursor from the previous page, or ``None`` to start.
            per_page: Page size.
            direction: ``'asc'`` or ``'desc'``.
            model: Record type to decode rows into.
            ctx: Execution context.

        Raises:
            ValueError: On a bad ``direction`` or ``per_page``.
        """
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"direction must be 'asc' or 'desc', got {direction!r}.")
        if per_page < 1:
            raise ValueError(f"per_page must be at least 1, got {per_page}.")
        descending = direction == "desc"

        query = self.clone()
        if last_value is not None:
            query.where(column, "<" if descending else ">", last_value)
        query._order_by = [self._dialect.order_by(column, desc=descending)]
        query._limit = per_page + 1
        query._offset = None
        rows = query._fetch_rows(ctx)

        has_more = len(rows) > per_page
        rows = rows[:per_page]
        key = _key(column)
        next_cursor = rows[-1].get(key) if has_more and rows else None
        prev_cursor = rows[0].get(key) if rows else None
        data = [decode_record(model, row) for row in rows] if model is not None else rows
        return KeysetPaginationResult(
            data=data,
            has_more=has_more,
            next_cursor=next_cursor,
            prev_cursor=prev_cursor,
        )
