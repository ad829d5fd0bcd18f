"""Shared pytest fixtures for querycraft unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from querycraft import QueryCraft
from querycraft.dialect import MySQLDialect, PostgresDialect, SQLiteDialect
from tests.fixtures import RecordingExecutor, seed_sqlite


@pytest.fixture()
def recorder() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def my(recorder: RecordingExecutor) -> QueryCraft:
    """MySQL client over a recording executor."""
    return QueryCraft(recorder, MySQLDialect())


@pytest.fixture()
def pg(recorder: RecordingExecutor) -> QueryCraft:
    """PostgreSQL client over a recording executor."""
    return QueryCraft(recorder, PostgresDialect())


@pytest.fixture()
def sq(recorder: RecordingExecutor) -> QueryCraft:
    """SQLite client over a recording executor."""
    return QueryCraft(recorder, SQLiteDialect())


@pytest.fixture()
def conn() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite database seeded with 50 users and 3 orders."""
    connection = sqlite3.connect(":memory:")
    seed_sqlite(connection)
    yield connection
    connection.close()


@pytest.fixture()
def db(conn: sqlite3.Connection) -> QueryCraft:
    """SQLite client over the seeded in-memory database."""
    return QueryCraft.from_dbapi(conn, "sqlite")
