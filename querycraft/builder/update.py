"""UPDATE statement builder."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from querycraft.builder.base import Builder
from querycraft.builder.clauses import Join, quote_table
from querycraft.builder.conditions import ConditionAssembler, ConditionMixin
from querycraft.context import ExecutionContext
from querycraft.dialect.base import BIND, Dialect
from querycraft.errors import UnsupportedValueError
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.records import describe
from querycraft.schema.results import ExecResult


class Update(ConditionMixin, Builder):
    """Fluent UPDATE builder.

    Render order: ``UPDATE`` → joins → ``SET`` → ``WHERE`` → ``LIMIT``.  SET
    arguments precede WHERE arguments.

    Example::

        qc.update("users").increment("login_count").where_eq("id", 7).exec()
    """

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
        self._sets: list[str] = []
        self._set_args: list[Any] = []
        self._allowed: list[str] = []
        self._joins: list[Join] = []
        self._where = ConditionAssembler()
        self._limit: int | None = None

    def _conditions(self) -> ConditionAssembler:
        return self._where

    def set(self, column: str, value: Any) -> Update:
        self._sets.append(f"{self._dialect.quote_column(column)} = {BIND}")
        self._set_args.append(value)
        return self

    def set_raw(self, expression: str, *args: Any) -> Update:
        """Add a verbatim assignment such as ``"updated_at = NOW()"``."""
        self._sets.append(expression)
        self._set_args.extend(args)
        return self

    def set_map(self, values: Mapping[str, Any]) -> Update:
        for column, value in values.items():
            self.set(column, value)
        return self

    def columns(self, *columns: str) -> Update:
        """Restrict :meth:`set_record` to ``columns``."""
        self._allowed = list(columns)
        return self

    def set_record(self, record: Any) -> Update:
        """Assign every mapped field of ``record`` (filtered by :meth:`columns`).

        Raises:
            UnsupportedValueError: If ``record`` has no descriptor.
        """
        if record is None:
            return self
        descriptor = describe(type(record))
        if descriptor is None:
            raise UnsupportedValueError(record)
        allowed = set(self._allowed)
        for column, value in descriptor.extract(record).items():
            if allowed and column not in allowed:
                continue
            self.set(column, value)
        return self

    def increment(self, column: str, by: int = 1) -> Update:
        col = self._dialect.quote_column(column)
        return self.set_raw(f"{col} = {col} + {BIND}", by)

    def decrement(self, column: str, by: int = 1) -> Update:
        col = self._dialect.quote_column(column)
        return self.set_raw(f"{col} = {col} - {BIND}", by)

    def join(self, table: str, condition: str, *args: Any) -> Update:
        self._joins.append(Join("INNER JOIN", table, condition, args))
        return self

    def left_join(self, table: str, condition: str, *args: Any) -> Update:
        self._joins.append(Join("LEFT JOIN", table, condition, args))
        return self

    def limit(self, limit: int) -> Update:
        """Cap the rows updated (MySQL; SQLite builds with LIMIT support).

        PostgreSQL rejects the clause with :class:`DialectError` when rendered.
        """
        self._limit = limit
        return self

    def build(self) -> tuple[str, list[Any]]:
        d = self._dialect
        args: list[Any] = []
        parts = [f"UPDATE {quote_table(d, self._table)}"]
        for join in self._joins:
            parts.append(join.render(d))
            args.extend(join.args)
        if self._sets:
            parts.append("SET " + ", ".join(self._sets))
            args.extend(self._set_args)
        where_sql, where_args = self._where.render()
        if where_sql:
            parts.append(f"WHERE {where_sql}")
            args.extend(where_args)
        if self._limit is not None:
            parts.append(d.update_limit(self._limit))
        return " ".join(parts), args

    def exec(self, ctx: ExecutionContext | None = None) -> ExecResult:
        return self._execute(ctx)
