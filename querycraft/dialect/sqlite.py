"""SQLite dialect."""

from __future__ import annotations

from collections.abc import Sequence

from querycraft.dialect.postgres import PostgresDialect


class SQLiteDialect(PostgresDialect):
    """SQLite syntax.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    module (qmark paramstyle).

    SQLite's upsert clause (3.24+) follows PostgreSQL's ``ON CONFLICT`` form,
    so the conflict renderers are inherited.
    """

    ordinal_placeholders = True
    excluded_ref = "excluded"

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:
        return "?"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            limit = -1
        return super().limit_offset(limit, offset)

    def insert_keyword(self, ignore: bool = False) -> str:
        return "INSERT OR IGNORE INTO" if ignore else "INSERT INTO"

    def replace_keyword(self) -> str:
        return "REPLACE INTO"

    def update_limit(self, limit: int) -> str:
        # Only accepted by builds with SQLITE_ENABLE_UPDATE_DELETE_LIMIT.
        return self.limit_clause(limit)

    def delete_limit(self, limit: int) -> str:
        return self.limit_clause(limit)

    def on_conflict_do_nothing(self, conflict_columns: Sequence[str]) -> str:
        return ""  # INSERT OR IGNORE carries it

    def on_conflict_update(
        self,
        conflict_columns: Sequence[str],
        updatable: Sequence[str],
        requested: Sequence[str],
        excluded: Sequence[str],
    ) -> str:
        if not self.update_columns(updatable, requested, excluded):
            return super().on_conflict_do_nothing(conflict_columns)
        return super().on_conflict_update(conflict_columns, updatable, requested, excluded)

    def explain(self, sql: str) -> str:
        return f"EXPLAIN QUERY PLAN {sql}"
