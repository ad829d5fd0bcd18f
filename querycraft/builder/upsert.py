"""Upsert builder: one INSERT with a mandatory conflict clause."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from querycraft.builder.base import Builder
from querycraft.builder.insert import RowCollector
from querycraft.context import ExecutionContext
from querycraft.dialect.base import Dialect
from querycraft.errors import UnsupportedValueError
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.records import is_record
from querycraft.schema.results import ExecResult


class Upsert(RowCollector, Builder):
    """Fluent upsert builder.

    With no update selector every inserted column that is not a conflict
    column is overwritten::

        (
            qc.upsert("users")
            .values({"email": "a@x.com", "name": "A", "visits": 1})
            .on_conflict("email")
            .do_update_except("visits")
            .exec()
        )
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
        self._columns: list[str] = []
        self._rows: list[list[Any]] = []
        self._conflict_columns: list[str] = []
        self._update_columns: list[str] = []
        self._except_columns: list[str] = []
        self._do_nothing = False

    def columns(self, *columns: str) -> Upsert:
        self._columns = list(columns)
        return self

    def values(self, data: Any) -> Upsert:
        """Add a record, a mapping, or a list of them.

        Raises:
            UnsupportedValueError: For any other shape.
        """
        if isinstance(data, Mapping) or is_record(data):
            self._add_item(data)
        elif isinstance(data, (list, tuple)):
            for item in data:
                if not (isinstance(item, Mapping) or is_record(item)):
                    raise UnsupportedValueError(item)
                self._add_item(item)
        else:
            raise UnsupportedValueError(data)
        return self

    def on_conflict(self, *columns: str) -> Upsert:
        """Set the columns that identify a conflicting row."""
        self._conflict_columns = list(columns)
        return self

    def do_update(self, *columns: str) -> Upsert:
        """Overwrite only ``columns`` on conflict."""
        self._update_columns = list(columns)
        self._do_nothing = False
        return self

    def do_update_except(self, *columns: str) -> Upsert:
        """Overwrite every inserted column except ``columns`` on conflict."""
        self._except_columns = list(columns)
        self._do_nothing = False
        return self

    def do_nothing(self) -> Upsert:
        self._do_nothing = True
        return self

    def build(self) -> tuple[str, list[Any]]:
        d = self._dialect
        keyword = d.insert_keyword(ignore=self._do_nothing)
        head = f"{keyword} {d.quote_column(self._table)}{self._render_columns(d)}"
        body, args = self._render_values()
        if self._do_nothing:
            tail = d.on_conflict_do_nothing(self._conflict_columns)
        else:
            conflict = set(self._conflict_columns)
            updatable = [c for c in self._columns if c not in conflict]
            tail = d.on_conflict_update(
                self._conflict_columns, updatable, self._update_columns, self._except_columns
            )
        parts = [head, body]
        if tail:
            parts.append(tail)
        return " ".join(parts), args

    def exec(self, ctx: ExecutionContext | None = None) -> ExecResult:
        return self._execute(ctx)

    def exec_return_id(self, ctx: ExecutionContext | None = None) -> int | None:
        """Execute and return the driver's last insert id."""
        return self._execute(ctx).last_insert_id
