"""Executor boundary between the builders and a database driver.

Builders hand every finished statement to an :class:`Executor`.  An executor
owns the driver connection; it runs statements, yields result rows as
mappings, and decodes rows into record types.  Two abstract operations are
required; row fetching and record decoding are shared.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

from querycraft.context import ExecutionContext
from querycraft.errors import NoRowsError, TransactionError
from querycraft.schema.records import decode_record
from querycraft.schema.results import ExecResult
from querycraft.schema.values import normalize_row

T = TypeVar("T")


class Executor(ABC):
    """Abstract statement executor.

    Subclasses implement :meth:`execute` and :meth:`query`; both must call
    ``ctx.raise_if_done()`` before dispatching to the driver.
    """

    @abstractmethod
    def execute(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> ExecResult:
        """Run a write statement.

        Args:
            sql: Dialect SQL.
            args: Positional arguments matching the placeholders.
            ctx: Execution context checked before dispatch.

        Returns:
            Rows affected and the driver's last insert id.
        """

    @abstractmethod
    def query(
        self, sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> Iterator[dict[str, Any]]:
        """Run a row-returning statement and iterate its rows as dicts."""

    def fetch_rows(
        self, sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> list[dict[str, Any]]:
        """Return every row as a plain dict, UTF-8 byte columns decoded."""
        return [normalize_row(row) for row in self.query(sql, args, ctx)]

    def fetch_row(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> dict[str, Any]:
        """Return the first row.

        Raises:
            NoRowsError: If the statement returned no rows.
        """
        rows = self.query(sql, args, ctx)
        try:
            first = next(rows, None)
        finally:
            close = getattr(rows, "close", None)
            if close is not None:
                close()
        if first is None:
            raise NoRowsError(sql)
        return normalize_row(first)

    def fetch_one(
        self, model: type[T], sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> T:
        """Return the first row decoded into ``model``.

        Raises:
            NoRowsError: If the statement returned no rows.
            pydantic.ValidationError: If the row does not fit ``model``.
        """
        return decode_record(model, self.fetch_row(sql, args, ctx))

    def fetch_all(
        self, model: type[T], sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> list[T]:
        """Return every row decoded into ``model``."""
        return [decode_record(model, row) for row in self.fetch_rows(sql, args, ctx)]

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin(self) -> Executor:
        """Return an executor bound to a new transaction.

        Raises:
            TransactionError: If the executor does not support transactions.
        """
        raise TransactionError(f"{type(self).__name__} does not support transactions.")

    def commit(self) -> None:
        raise TransactionError(f"{type(self).__name__} is not bound to a transaction.")

    def rollback(self) -> None:
        raise TransactionError(f"{type(self).__name__} is not bound to a transaction.")
