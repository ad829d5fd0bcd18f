"""INSERT statement builder and the row collection it shares with upserts."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from querycraft.builder.base import Builder
from querycraft.context import ExecutionContext
from querycraft.dialect.base import BIND, Dialect
from querycraft.errors import UnsupportedValueError
from querycraft.executor.base import Executor
from querycraft.log import QueryLogger
from querycraft.schema.records import describe, is_record
from querycraft.schema.results import ExecResult
from querycraft.schema.values import is_scalar

if TYPE_CHECKING:
    from querycraft.builder.select import Select

CONFLICT_DEFAULT = "default"
CONFLICT_IGNORE = "ignore"
CONFLICT_UPDATE = "update"
CONFLICT_REPLACE = "replace"


class RowCollector:
    """Turns the value shapes accepted by ``values()`` into positional rows.

    Mappings and records fix the column list on first use when none was
    declared; afterwards their values are read in column order and missing
    columns become ``None``.
    """

    _columns: list[str]
    _rows: list[list[Any]]

    def _add_row(self, values: Iterable[Any]) -> None:
        self._rows.append(list(values))

    def _add_mapping(self, mapping: Mapping[str, Any]) -> None:
        if not self._columns:
            self._columns = list(mapping.keys())
        self._add_row(mapping.get(column) for column in self._columns)

    def _add_record(self, record: Any) -> None:
        descriptor = describe(type(record))
        if descriptor is None:
            raise UnsupportedValueError(record)
        self._add_mapping(descriptor.extract(record))

    def _add_item(self, item: Any) -> None:
        """Add one element of a list passed to ``values()``."""
        if isinstance(item, Mapping):
            self._add_mapping(item)
        elif is_record(item):
            self._add_record(item)
        elif isinstance(item, (list, tuple)) and all(is_scalar(v) for v in item):
            self._add_row(item)
        else:
            raise UnsupportedValueError(item)

    def _collect(self, values: tuple[Any, ...]) -> None:
        if len(values) != 1:
            for value in values:
                if not is_scalar(value):
                    raise UnsupportedValueError(value)
            if values:
                self._add_row(values)
            return

        value = values[0]
        if isinstance(value, Mapping):
            self._add_mapping(value)
        elif is_record(value):
            self._add_record(value)
        elif isinstance(value, (list, tuple)):
            if all(is_scalar(v) for v in value):
                if value:
                    self._add_row(value)
            else:
                for item in value:
                    self._add_item(item)
        elif is_scalar(value):
            self._add_row(values)
        else:
            raise UnsupportedValueError(value)

    def _render_values(self) -> tuple[str, list[Any]]:
        groups: list[str] = []
        args: list[Any] = []
        for row in self._rows:
            groups.append("(" + ", ".join(BIND for _ in row) + ")")
            args.extend(row)
        return "VALUES " + ", ".join(groups), args

    def _render_columns(self, dialect: Dialect) -> str:
        if not self._columns:
            return ""
        return " (" + ", ".join(dialect.quote_identifier(c) for c in self._columns) + ")"


class Insert(RowCollector, Builder):
    """Fluent INSERT builder.

    Rows come from positional values, mappings, records, or a SELECT::

        qc.insert("users").columns("name", "email").values("A", "a@x.com").exec()
        qc.insert("users").values([{"name": "A"}, {"name": "B"}]).exec()
        qc.insert("archive").columns("id").from_select(qc.select("id").from_("users"))

    Conflict handling is one of: default (the engine raises), ignore,
    update, or replace (MySQL and SQLite only).
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
        self._select: Select | None = None
        self._conflict = CONFLICT_DEFAULT
        self._conflict_columns: list[str] = []
        self._update_columns: list[str] = []

    def columns(self, *columns: str) -> Insert:
        self._columns = list(columns)
        return self

    def values(self, *values: Any) -> Insert:
        """Add rows.

        Accepts positional scalars (one row), a mapping, a record, or a list
        or tuple of mappings, records or rows.

        Raises:
            UnsupportedValueError: For any other shape.
        """
        self._collect(values)
        return self

    def values_map(self, mapping: Mapping[str, Any]) -> Insert:
        self._add_mapping(mapping)
        return self

    def values_maps(self, mappings: Iterable[Mapping[str, Any]]) -> Insert:
        for mapping in mappings:
            self._add_mapping(mapping)
        return self

    def from_select(self, select: Select) -> Insert:
        """Insert the rows of ``select`` instead of a VALUES list."""
        self._select = select
        return self

    def ignore(self) -> Insert:
        """Skip rows that conflict with an existing key."""
        self._conflict = CONFLICT_IGNORE
        return self

    def replace(self) -> Insert:
        """Emit ``REPLACE INTO``: conflicting rows are deleted, then inserted.

        Rendering raises :class:`DialectError` on PostgreSQL, which has no
        REPLACE statement.
        """
        self._conflict = CONFLICT_REPLACE
        return self

    def on_conflict_do_nothing(self, *conflict_columns: str) -> Insert:
        self._conflict = CONFLICT_IGNORE
        self._conflict_columns = list(conflict_columns)
        return self

    def on_conflict_do_update(self, *columns: str, conflict_columns: Iterable[str] = ()) -> Insert:
        """Update existing rows on conflict.

        Args:
            columns: Columns to overwrite with the incoming values; all
                inserted columns when empty.
            conflict_columns: Conflict target, required by PostgreSQL and
                SQLite; MySQL infers it from the table's unique keys.
        """
        self._conflict = CONFLICT_UPDATE
        self._update_columns = list(columns)
        self._conflict_columns = list(conflict_columns)
        return self

    def build(self) -> tuple[str, list[Any]]:
        d = self._dialect
        if self._conflict == CONFLICT_REPLACE:
            keyword = d.replace_keyword()
        else:
            keyword = d.insert_keyword(ignore=self._conflict == CONFLICT_IGNORE)
        head = f"{keyword} {d.quote_column(self._table)}{self._render_columns(d)}"
        if self._select is not None:
            body, args = self._select.build()
        else:
            body, args = self._render_values()
        parts = [head, body]

        if self._conflict == CONFLICT_IGNORE:
            tail = d.on_conflict_do_nothing(self._conflict_columns)
        elif self._conflict == CONFLICT_UPDATE:
            tail = d.on_conflict_update(
                self._conflict_columns, self._columns, self._update_columns, ()
            )
        else:
            tail = ""
        if tail:
            parts.append(tail)
        return " ".join(parts), args

    def exec(self, ctx: ExecutionContext | None = None) -> ExecResult:
        return self._execute(ctx)

    def exec_return_id(self, ctx: ExecutionContext | None = None) -> int | None:
        """Execute and return the driver's last insert id."""
        return self._execute(ctx).last_insert_id
