"""querycraft – fluent SQL query construction.

Public API
----------
``QueryCraft``
    Client that hands out ``Select``, ``Insert``, ``Upsert``, ``Update``,
    ``Delete`` and ``Raw`` builders bound to one executor and dialect.

``Transaction``
    A ``QueryCraft`` bound to an open transaction; usable as a context
    manager.

Extensibility
-------------
New dialects can be registered via::

    from querycraft.dialect import DialectFactory, PostgresDialect

    @DialectFactory.register("cockroach")
    class CockroachDialect(PostgresDialect):
        ...
"""

from __future__ import annotations

from querycraft.builder import (
    ConditionAssembler,
    ConditionScope,
    Delete,
    Fragment,
    Insert,
    Select,
    Update,
    Upsert,
)
from querycraft.client import QueryCraft, Transaction
from querycraft.config import LoggerOptions, QueryCraftOptions
from querycraft.context import ExecutionContext, background
from querycraft.dialect import (
    Dialect,
    DialectFactory,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
)
from querycraft.errors import (
    DialectError,
    NoRowsError,
    QueryCancelledError,
    QueryCraftError,
    TransactionError,
    UnsupportedValueError,
)
from querycraft.executor import DBAPIExecutor, Executor, SQLAlchemyExecutor
from querycraft.log import NullQueryLogger, QueryLogger, StandardQueryLogger
from querycraft.raw import Raw
from querycraft.schema import (
    ExecResult,
    KeysetPaginationResult,
    PaginationResult,
    RecordDescriptor,
    SQLValue,
    register_record,
)

# ---------------------------------------------------------------------------
# Register built-in dialects with DialectFactory
# ---------------------------------------------------------------------------

DialectFactory.register_class("mysql", MySQLDialect)
DialectFactory.register_class("postgres", PostgresDialect)
DialectFactory.register_class("postgresql", PostgresDialect)
DialectFactory.register_class("sqlite", SQLiteDialect)

__version__ = "0.1.0"

__all__ = [
    # Client
    "QueryCraft",
    "Transaction",
    "QueryCraftOptions",
    "LoggerOptions",
    # Builders
    "Select",
    "Insert",
    "Upsert",
    "Update",
    "Delete",
    "Raw",
    "ConditionAssembler",
    "ConditionScope",
    "Fragment",
    # Dialects
    "Dialect",
    "DialectFactory",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    # Execution
    "Executor",
    "DBAPIExecutor",
    "SQLAlchemyExecutor",
    "ExecutionContext",
    "background",
    # Logging
    "QueryLogger",
    "StandardQueryLogger",
    "NullQueryLogger",
    # Schema types
    "SQLValue",
    "RecordDescriptor",
    "register_record",
    "ExecResult",
    "PaginationResult",
    "KeysetPaginationResult",
    # Errors
    "QueryCraftError",
    "NoRowsError",
    "UnsupportedValueError",
    "DialectError",
    "TransactionError",
    "QueryCancelledError",
]
