"""DELETE statement builder."""
from __future__ import annotations

from typing import Any

from querycraft.builder.base import Builder
from querycraft.builder.clauses import Join, quote_table
from querycraft.builder.conditions import ConditionAssembler, ConditionMixin
from querycraft.context import ExecutionContext
from querycraft.dialect.base import Dialect
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.results import ExecResult


class Delete(ConditionMixin, Builder):
    """Fluent DELETE builder: ``DELETE FROM`` → joins → ``WHERE`` → ``ORDER BY`` → ``LIMIT``."""

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect,
        table: str,
        logger: QueryLogger | None = None,
        print_sql: bool = False,
    ) -> None:
        super().__init__(executor, dialect, logger, print_sql)
        self._table = table
        self._joins: list[Join] = []
        self._where = ConditionAssembler()
        self._order_by: list[str] = []
        self._limit: int | None = None

    def _conditions(self) -> ConditionAssembler:
        return self._where

    def join(self, table: str, condition: str, *args: Any) -> Delete:
        self._joins.append(Join("INNER JOIN", table, condition, args))
        return self

    def order_by(self, column: str) -> Delete:
        self._order_by.append(self._dialect.order_by(column))
        return self

    def order_by_desc(self, column: str) -> Delete:
        self._order_by.append(self._dialect.order_by(column, desc=True))
        return self

    def limit(self, limit: int) -> Delete:
        """Cap the rows deleted; PostgreSQL rejects it when rendered."""
        self._limit = limit
        return self

    def build(self) -> tuple[str, list[Any]]:
        d = self._dialect
        args: list[Any] = []
        parts = [f"DELETE FROM {quote_table(d, self._table)}"]
        for join in self._joins:
            parts.append(join.render(d))
            args.extend(join.args)
        where_sql, where_args = self._where.render()
        if where_sql:
            parts.append(f"WHERE {where_sql}")
            args.extend(where_args)
        if self._order_by:
            parts.append("ORDER BY " + ", ".join(self._order_by))
        if self._limit is not None:
            parts.append(d.delete_limit(self._limit))
        return " ".join(parts), args

    def exec(self, ctx: ExecutionContext | None = None) -> ExecResult:
        return self._execute(ctx)
