"""Integration tests: builders executed through a SQLAlchemy engine.

Runs against an in-memory SQLite database shared across connections with
``StaticPool``.
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest

from querycraft import QueryCraft
from querycraft.dialect import SQLiteDialect
from querycraft.errors import NoRowsError, TransactionError
from querycraft.executor.sqlalchemy import SQLAlchemyExecutor
from tests.fixtures import load_ddl, user_rows

sqlalchemy = pytest.importorskip("sqlalchemy", reason="sqlalchemy required for engine tests")


@pytest.fixture()
def engine() -> Iterator[object]:
    from sqlalchemy.pool import StaticPool

    eng = sqlalchemy.create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    raw = eng.raw_connection()
    try:
        raw.driver_connection.executescript(load_ddl("sqlite"))
        raw.driver_connection.executemany(
            "INSERT INTO users (name, email, age, status) VALUES (?, ?, ?, ?)",
            user_rows(10),
        )
        raw.driver_connection.commit()
    finally:
        raw.close()
    yield eng
    eng.dispose()


@pytest.fixture()
def qc(engine) -> QueryCraft:
    return QueryCraft.from_sqlalchemy(engine)


def test_dialect_taken_from_engine(qc: QueryCraft):
    assert isinstance(qc.executor, SQLAlchemyExecutor)
    assert isinstance(qc.dialect, SQLiteDialect)


def test_select_and_aggregate(qc: QueryCraft):
    rows = qc.select("id", "name").from_("users").where("age", ">=", 27).order_by("id").rows()
    assert rows == [
        {"id": 8, "name": "user8"},
        {"id": 9, "name": "user9"},
        {"id": 10, "name": "user10"},
    ]
    assert qc.select().from_("users").count() == 10


def test_write_round_trip(qc: QueryCraft):
    new_id = qc.insert("users").values({"name": "n", "email": "n@example.com"}).exec_return_id()
    assert new_id == 11
    qc.update("users").set("name", "m").where_eq("id", new_id).exec()
    assert qc.select().from_("users").where_eq("id", new_id).field("name") == "m"
    assert qc.delete("users").where_eq("id", new_id).exec().rows_affected == 1
    with pytest.raises(NoRowsError):
        qc.select().from_("users").where_eq("id", new_id).row()


def test_transaction_commit_and_rollback(qc: QueryCraft):
    with qc.begin() as tx:
        tx.insert("archived_users").values({"id": 1, "name": "kept"}).exec()

    with pytest.raises(RuntimeError):
        with qc.begin() as tx:
            tx.insert("archived_users").values({"id": 2, "name": "dropped"}).exec()
            raise RuntimeError("abort")

    assert qc.select("name").from_("archived_users").pluck("name") == ["kept"]


def test_finished_executor_rejects_commit(engine):
    tx = SQLAlchemyExecutor(engine).begin()
    tx.rollback()
    with pytest.raises(TransactionError):
        tx.commit()
    inner = tx.begin()
    with pytest.raises(TransactionError):
        inner.begin()
    inner.rollback()
