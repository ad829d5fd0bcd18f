"""Test fixtures: sample DDL, seed data and a recording executor."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from querycraft.context import ExecutionContext
from querycraft.executor.base import Executor
from querycraft.schema.results import ExecResult

_FIXTURES_DIR = Path(__file__).parent

STATUSES = ("active", "inactive", "banned")


def load_ddl(dialect: str = "sqlite") -> str:
    """Return the sample DDL for ``dialect`` (``sqlite`` or ``postgres``)."""
    return (_FIXTURES_DIR / f"ddl_{dialect}.sql").read_text()


def user_rows(count: int = 50) -> list[tuple[Any, ...]]:
    """Return ``count`` deterministic ``(name, email, age, status)`` tuples.

    Ages run 20, 21, ... and statuses cycle through :data:`STATUSES`.
    """
    return [
        (f"user{i}", f"user{i}@example.com", 20 + (i - 1) % 40, STATUSES[(i - 1) % 3])
        for i in range(1, count + 1)
    ]


def seed_sqlite(conn: sqlite3.Connection, users: int = 50) -> None:
    """Create the sample schema and insert ``users`` rows (ids 1..users)."""
    conn.executescript(load_ddl("sqlite"))
    conn.executemany(
        "INSERT INTO users (name, email, age, status) VALUES (?, ?, ?, ?)",
        user_rows(users),
    )
    conn.executemany(
        "INSERT INTO orders (user_id, total, status) VALUES (?, ?, ?)",
        [(1, 10.5, "paid"), (1, 20.0, "new"), (2, 5.25, "paid")],
    )
    conn.commit()


class RecordingExecutor(Executor):
    """Executor that records statements and replays canned rows.

    Attributes:
        calls: ``(kind, sql, args)`` for every statement, in order.
        rows: Rows returned by every query.
        result: Result returned by every write.
    """

    def __init__(
        self,
        rows: Sequence[dict[str, Any]] = (),
        result: ExecResult | None = None,
        error: Exception | None = None,
    ) -> None:
        self.calls: list[tuple[str, str, list[Any]]] = []
        self.rows = [dict(r) for r in rows]
        self.result = result or ExecResult(rows_affected=1, last_insert_id=1)
        self.error = error

    @property
    def last_sql(self) -> str:
        return self.calls[-1][1]

    @property
    def last_args(self) -> list[Any]:
        return self.calls[-1][2]

    def execute(self, sql: str, args: Sequence[Any], ctx: ExecutionContext) -> ExecResult:
        ctx.raise_if_done()
        self.calls.append(("execute", sql, list(args)))
        if self.error is not None:
            raise self.error
        return self.result

    def query(
        self, sql: str, args: Sequence[Any], ctx: ExecutionContext
    ) -> Iterator[dict[str, Any]]:
        ctx.raise_if_done()
        self.calls.append(("query", sql, list(args)))
        if self.error is not None:
            raise self.error
        return iter([dict(r) for r in self.rows])
