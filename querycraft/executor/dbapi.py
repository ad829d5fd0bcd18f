"""Executor over any PEP 249 (DB-API 2.0) connection."""
from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator, Sequence
from typing import Any

from querycraft.context import ExecutionContext
from querycraft.errors import DialectError, TransactionError
from querycraft.executor.base import Executor
from querycraft.executor.paramstyle import PARAMSTYLES, translate
from querycraft.schema.results import ExecResult


class DBAPIExecutor(Executor):
    """Runs statements on a DB-API connection.

    Args:
        connection: An open PEP 249 connection (``sqlite3``, ``pymysql``,
            ``psycopg`` ...).
        paramstyle: The driver's paramstyle; usually the driver module's
            ``paramstyle`` attribute.
        autocommit: Commit after every write statement.  Executors returned
            by :meth:`begin` never autocommit.

    Example::

        import sqlite3
        executor = DBAPIExecutor(sqlite3.connect("app.db"))
    """

    def __init__(self, connection: Any, paramstyle: str = "qmark", autocommit: bool = True) -> None:
        if paramstyle not in PARAMSTYLES:
            raise DialectError(
                f"Unsupported paramstyle: '{paramstyle}'. Supported: {list(PARAMSTYLES)}.",
                name=paramstyle,
            )
        self.connection = connection
        self.paramstyle = paramstyle
        self.autocommit = autocommit
        self._in_transaction = False
        self._restore_autocommit: Callable[[], None] | None = None

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def _cursor(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> Any:
        ctx.raise_if_done()
        query, params = translate(sql, args, self.paramstyle)
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
        except BaseException:
            cursor.close()
            raise
        return cursor

    def execute(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> ExecResult:
        cursor = self._cursor(sql, args, ctx)
        try:
            rowcount = cursor.rowcount
            result = ExecResult(
                rows_affected=rowcount if rowcount is not None and rowcount >= 0 else 0,
                last_insert_id=getattr(cursor, "lastrowid", None),
            )
        finally:
            cursor.close()
        if self.autocommit and not self._in_transaction:
            self.connection.commit()
        return result

    def query(
        self, sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> Iterator[dict[str, Any]]:
        cursor = self._cursor(sql, args, ctx)
        columns = [d[0] for d in cursor.description or ()]
        return _iter_rows(cursor, columns)

    def begin(self) -> DBAPIExecutor:
        """Return an executor sharing this connection inside a transaction.

        Raises:
            TransactionError: If this executor is already transactional.
        """
        if self._in_transaction:
            raise TransactionError("Nested transactions are not supported.")
        tx = DBAPIExecutor(self.connection, self.paramstyle, autocommit=False)
        tx._in_transaction = True
        tx._restore_autocommit = suspend_autocommit(self.connection)
        return tx

    def _finish(self, end: Callable[[], None]) -> None:
        if not self._in_transaction:
            raise TransactionError("Executor is not bound to a transaction.")
        self._in_transaction = False
        restore, self._restore_autocommit = self._restore_autocommit, None
        try:
            end()
        finally:
            if restore is not None:
                restore()

    def commit(self) -> None:
        self._finish(self.connection.commit)

    def rollback(self) -> None:
        self._finish(self.connection.rollback)


def suspend_autocommit(connection: Any) -> Callable[[], None] | None:
    """Switch a connection out of driver-level autocommit mode.

    Writes on an autocommit connection are committed by the driver one by
    one, so a rollback would have nothing to undo.  Recognises the PyMySQL /
    mysqlclient ``autocommit()`` method, the ``autocommit`` attribute of
    psycopg and of ``sqlite3`` on Python 3.12+, and ``sqlite3``'s legacy
    ``isolation_level = None``.

    Returns:
        A callable that switches autocommit back on, or ``None`` when the
        connection was not in autocommit mode.
    """
    getter = getattr(connection, "get_autocommit", None)
    if callable(getter):
        if not getter():
            return None
        connection.autocommit(False)
        return lambda: connection.autocommit(True)

    if getattr(connection, "autocommit", None) is True:
        connection.autocommit = False

        def _restore() -> None:
            connection.autocommit = True

        return _restore

    if isinstance(connection, sqlite3.Connection) and connection.isolation_level is None:
        connection.isolation_level = "DEFERRED"

        def _restore_isolation() -> None:
            connection.isolation_level = None

        return _restore_isolation
    return None


def _iter_rows(cursor: Any, columns: list[str]) -> Iterator[dict[str, Any]]:
    try:
        for record in iter(cursor.fetchone, None):
            yield dict(zip(columns, record))
    finally:
        cursor.close()
