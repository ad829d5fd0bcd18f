"""Client entry point and transactions.

:class:`QueryCraft` binds an executor, a dialect and options together and
hands out statement builders.  :class:`Transaction` is the same client bound
to a transactional executor::

    import sqlite3
    from querycraft import QueryCraft

    qc = QueryCraft.from_dbapi(sqlite3.connect("app.db"), "sqlite")
    with qc.begin() as tx:
        tx.insert("users").values({"name": "A"}).exec()
        tx.update("stats").increment("users").exec()
"""
from __future__ import annotations

import sys
from types import TracebackType
from typing import Any

from querycraft.builder.delete import Delete
from querycraft.builder.insert import Insert
from querycraft.builder.select import Select
from querycraft.builder.update import Update
from querycraft.builder.upsert import Upsert
from querycraft.config import QueryCraftOptions
from querycraft.dialect.base import Dialect
from querycraft.dialect.registry import DialectFactory
from querycraft.errors import TransactionError
from querycraft.executor.base import Executor
from querycraft.executor.dbapi import DBAPIExecutor
from querycraft.executor.sqlalchemy import SQLAlchemyExecutor
from querycraft.log import QueryLogger, StandardQueryLogger
from querycraft.raw import Raw


def driver_paramstyle(connection: Any, default: str = "qmark") -> str:
    """Return the ``paramstyle`` of the DB-API module that created ``connection``."""
    root = type(connection).__module__.split(".")[0]
    module = sys.modules.get(root)
    return getattr(module, "paramstyle", default)


class QueryCraft:
    """Builder factory bound to one executor and dialect.

    Args:
        executor: Runs the statements.
        dialect: A :class:`Dialect` or a registered dialect name.
        options: Client options; defaults to ``QueryCraftOptions()``.
        logger: Query logger; defaults to a :class:`StandardQueryLogger`
            built from ``options.logger``.

    Raises:
        DialectError: If ``dialect`` names no registered dialect.
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect | str,
        options: QueryCraftOptions | None = None,
        logger: QueryLogger | None = None,
    ) -> None:
        self.executor = executor
        self.dialect = DialectFactory.resolve(dialect)
        self.options = options or QueryCraftOptions()
        self.logger: QueryLogger = (
            logger if logger is not None else StandardQueryLogger(self.options.logger)
        )

    @classmethod
    def from_dbapi(
        cls,
        connection: Any,
        dialect: Dialect | str,
        options: QueryCraftOptions | None = None,
        paramstyle: str | None = None,
    ) -> QueryCraft:
        """Build a client over a PEP 249 connection.

        Args:
            connection: Open DB-API connection.
            dialect: Dialect or dialect name.
            options: Client options.
            paramstyle: Driver paramstyle; read from the driver module when
                omitted.
        """
        style = paramstyle or driver_paramstyle(connection)
        return cls(DBAPIExecutor(connection, paramstyle=style), dialect, options)

    @classmethod
    def from_sqlalchemy(
        cls,
        engine: Any,
        dialect: Dialect | str | None = None,
        options: QueryCraftOptions | None = None,
    ) -> QueryCraft:
        """Build a client over a SQLAlchemy engine.

        The dialect defaults to the engine's dialect name.
        """
        executor = SQLAlchemyExecutor(engine)
        return cls(executor, dialect or executor.dialect_name, options)

    def _check(self) -> None:
        """Hook run before a builder is handed out."""

    def _builder_kwargs(self) -> dict[str, Any]:
        return {"logger": self.logger, "print_sql": self.options.print_sql}

    def select(self, *columns: str) -> Select:
        self._check()
        return Select(self.executor, self.dialect, columns=columns, **self._builder_kwargs())

    def insert(self, table: str) -> Insert:
        self._check()
        return Insert(self.executor, self.dialect, table, **self._builder_kwargs())

    def upsert(self, table: str) -> Upsert:
        self._check()
        return Upsert(self.executor, self.dialect, table, **self._builder_kwargs())

    def update(self, table: str) -> Update:
        self._check()
        return Update(self.executor, self.dialect, table, **self._builder_kwargs())

    def delete(self, table: str) -> Delete:
        self._check()
        return Delete(self.executor, self.dialect, table, **self._builder_kwargs())

    def raw(self, query: str, *args: Any) -> Raw:
        self._check()
        return Raw(self.executor, self.dialect, query, *args, **self._builder_kwargs())

    def begin(self) -> Transaction:
        """Start a transaction on a transactional executor."""
        return Transaction(self.executor.begin(), self.dialect, self.options, self.logger)


class Transaction(QueryCraft):
    """A client bound to one open transaction.

    Used as a context manager it commits on normal exit and rolls back when
    the block raises.  A finished transaction hands out no more builders.
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect | str,
        options: QueryCraftOptions | None = None,
        logger: QueryLogger | None = None,
    ) -> None:
        super().__init__(executor, dialect, options, logger)
        self._done = False

    @property
    def active(self) -> bool:
        return not self._done

    def _check(self) -> None:
        if self._done:
            raise TransactionError("Transaction has already been committed or rolled back.")

    def begin(self) -> Transaction:
        raise TransactionError("Nested transactions are not supported.")

    def commit(self) -> None:
        self._check()
        self._done = True
        self.executor.commit()

    def rollback(self) -> None:
        self._check()
        self._done = True
        self.executor.rollback()

    def __enter__(self) -> Transaction:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._done:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
