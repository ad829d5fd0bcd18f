"""MySQL dialect."""

from __future__ import annotations

from collections.abc import Sequence

from querycraft.dialect.base import Dialect

#: Largest value MySQL accepts for LIMIT; used when only an offset is set.
MAX_LIMIT = 18446744073709551615


class MySQLDialect(Dialect):
    """MySQL / MariaDB syntax.

    Parameter style: ``?`` (converted to ``%s`` by the executor for
    ``PyMySQL`` and ``mysqlclient``).

    Identifiers are quoted with backticks (`` ` ``) rather than double-quotes.
    MySQL has no OFFSET without LIMIT, so a maximal LIMIT is emitted.
    """

    quote_char = "`"

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:
        return "?"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            limit = MAX_LIMIT
        return super().limit_offset(limit, offset)

    def insert_keyword(self, ignore: bool = False) -> str:
        return "INSERT IGNORE INTO" if ignore else "INSERT INTO"

    def replace_keyword(self) -> str:
        return "REPLACE INTO"

    def on_conflict_do_nothing(self, conflict_columns: Sequence[str]) -> str:
        return ""  # INSERT IGNORE carries it

    def on_conflict_update(
        self,
        conflict_columns: Sequence[str],
        updatable: Sequence[str],
        requested: Sequence[str],
        excluded: Sequence[str],
    ) -> str:
        # The conflict target is implied by the table's unique keys.
        cols = self.update_columns(updatable, requested, excluded)
        if not cols:
            # No-op assignment keeps the statement valid and ignores the row.
            if not updatable:
                return ""
            first = self.quote_identifier(updatable[0])
            return f"ON DUPLICATE KEY UPDATE {first} = {first}"
        sets = ", ".join(
            f"{self.quote_identifier(c)} = VALUES({self.quote_identifier(c)})" for c in cols
        )
        return f"ON DUPLICATE KEY UPDATE {sets}"
