"""Executor over a SQLAlchemy engine (optional extra).

Statements are sent with ``Connection.exec_driver_sql`` so querycraft's SQL
reaches the DBAPI driver unchanged apart from placeholder translation to the
driver's paramstyle.  Install with ``pip install "querycraft[sqlalchemy]"``.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any

from querycraft.context import ExecutionContext
from querycraft.errors import TransactionError
from querycraft.executor.base import Executor
from querycraft.executor.paramstyle import translate
from querycraft.schema.results import ExecResult

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine, RootTransaction


class SQLAlchemyExecutor(Executor):
    """Runs statements on a SQLAlchemy :class:`~sqlalchemy.engine.Engine`.

    Outside a transaction each write runs in its own ``engine.begin()`` block
    and commits on success.

    Args:
        engine: The engine to draw connections from.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """

    def __init__(self, engine: Engine) -> None:
        try:
            import sqlalchemy  # noqa: F401
        except ImportError as exc:
            raise ImportError(
                "SQLAlchemy is required for SQLAlchemyExecutor. "
                'Install it with: pip install "querycraft[sqlalchemy]"'
            ) from exc
        self.engine = engine
        self._connection: Connection | None = None
        self._transaction: RootTransaction | None = None

    @property
    def dialect_name(self) -> str:
        """The engine's dialect name (``'sqlite'``, ``'postgresql'`` ...)."""
        return self.engine.dialect.name

    def _run(self, conn: Connection, sql: str, args: Sequence[Any]) -> Any:
        query, params = translate(sql, args, conn.dialect.paramstyle)
        return conn.exec_driver_sql(query, params)

    def execute(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> ExecResult:
        ctx.raise_if_done()
        if self._connection is not None:
            return _exec_result(self._run(self._connection, sql, args))
        with self.engine.begin() as conn:
            return _exec_result(self._run(conn, sql, args))

    def query(
        self, sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> Iterator[dict[str, Any]]:
        ctx.raise_if_done()
        if self._connection is not None:
            result = self._run(self._connection, sql, args)
            return iter([dict(row) for row in result.mappings()])
        with self.engine.connect() as conn:
            result = self._run(conn, sql, args)
            rows = [dict(row) for row in result.mappings()]
        return iter(rows)

    def begin(self) -> SQLAlchemyExecutor:
        """Return an executor bound to a new connection-level transaction.

        Raises:
            TransactionError: If this executor is already transactional.
        """
        if self._connection is not None:
            raise TransactionError("Nested transactions are not supported.")
        tx = SQLAlchemyExecutor(self.engine)
        tx._connection = self.engine.connect()
        tx._transaction = tx._connection.begin()
        return tx

    def _finish(self, commit: bool) -> None:
        if self._connection is None or self._transaction is None:
            raise TransactionError("Executor is not bound to a transaction.")
        try:
            if commit:
                self._transaction.commit()
            else:
                self._transaction.rollback()
        finally:
            self._connection.close()
            self._connection = None
            self._transaction = None

    def commit(self) -> None:
        self._finish(commit=True)

    def rollback(self) -> None:
        self._finish(commit=False)


def _exec_result(result: Any) -> ExecResult:
    rowcount = result.rowcount
    try:
        last_id = result.lastrowid
    except AttributeError:
        last_id = None
    return ExecResult(
        rows_affected=rowcount if rowcount is not None and rowcount >= 0 else 0,
        last_insert_id=last_id,
    )
