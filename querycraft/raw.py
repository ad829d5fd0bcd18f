"""Raw SQL queries run through the same executor, logger and dialect."""
from __future__ import annotations

from typing import Any

from querycraft.builder.base import Builder
from querycraft.context import ExecutionContext
from querycraft.dialect.base import Dialect
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.results import ExecResult


class Raw(Builder):
    """A hand-written statement with ``?`` markers.

    The text is passed through the dialect's placeholder rebinding, so the
    same ``?`` style works on every engine::

        qc.raw("SELECT * FROM users WHERE id = ?", 7).row()
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect,
        query: str,
        *args: Any,
        logger: QueryLogger | None = None,
        print_sql: bool = False,
    ) -> None:
        super().__init__(executor, dialect, logger, print_sql)
        self._query = query
        self._args = list(args)

    def query(self) -> str:
        """Return the statement text as given."""
        return self._query

    def args(self) -> list[Any]:
        return list(self._args)

    def build(self) -> tuple[str, list[Any]]:
        return self._query, list(self._args)

    def one(self, model: type | None = None, ctx: ExecutionContext | None = None) -> Any:
        """Return the first row, decoded into ``model`` when given.

        Raises:
            NoRowsError: If the query returned no rows.
        """
        if model is None:
            return self._fetch_row(ctx)
        return self._fetch_one(model, ctx)

    def all(self, model: type | None = None, ctx: ExecutionContext | None = None) -> list[Any]:
        if model is None:
            return self._fetch_rows(ctx)
        return self._fetch_all(model, ctx)

    def row(self, ctx: ExecutionContext | None = None) -> dict[str, Any]:
        return self._fetch_row(ctx)

    def rows(self, ctx: ExecutionContext | None = None) -> list[dict[str, Any]]:
        return self._fetch_rows(ctx)

    def exec(self, ctx: ExecutionContext | None = None) -> ExecResult:
        return self._execute(ctx)
