"""SQL dialects and the dialect registry."""

from querycraft.dialect.base import BIND, Dialect
from querycraft.dialect.mysql import MySQLDialect
from querycraft.dialect.postgres import PostgresDialect
from querycraft.dialect.registry import DialectFactory
from querycraft.dialect.sqlite import SQLiteDialect

__all__ = [
    "BIND",
    "Dialect",
    "DialectFactory",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
]
