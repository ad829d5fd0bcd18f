"""PostgreSQL dialect."""

from __future__ import annotations

from collections.abc import Sequence

from querycraft.dialect.base import Dialect
from querycraft.errors import DialectError


class PostgresDialect(Dialect):
    """PostgreSQL syntax.

    Parameter style: ``$1``, ``$2`` ... (numbered).  Builders emit neutral
    ``?`` markers which :meth:`rebind` numbers left to right, so nested
    sub-queries and HAVING arguments keep their positions.
    """

    ordinal_placeholders = False

    #: Keyword prefixing the incoming row in ``DO UPDATE SET``.
    excluded_ref = "EXCLUDED"

    @property
    def name(self) -> str:
        return "postgres"

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def update_limit(self, limit: int) -> str:
        raise DialectError("PostgreSQL does not support LIMIT on UPDATE.", name=self.name)

    def delete_limit(self, limit: int) -> str:
        raise DialectError("PostgreSQL does not support LIMIT on DELETE.", name=self.name)

    def _conflict_target(self, conflict_columns: Sequence[str]) -> str:
        if not conflict_columns:
            return "ON CONFLICT"
        cols = ", ".join(self.quote_identifier(c) for c in conflict_columns)
        return f"ON CONFLICT ({cols})"

    def on_conflict_do_nothing(self, conflict_columns: Sequence[str]) -> str:
        return f"{self._conflict_target(conflict_columns)} DO NOTHING"

    def on_conflict_update(
        self,
        conflict_columns: Sequence[str],
        updatable: Sequence[str],
        requested: Sequence[str],
        excluded: Sequence[str],
    ) -> str:
        cols = self.update_columns(updatable, requested, excluded)
        if not cols:
            return self.on_conflict_do_nothing(conflict_columns)
        sets = ", ".join(
            f"{self.quote_identifier(c)} = {self.excluded_ref}.{self.quote_identifier(c)}"
            for c in cols
        )
        return f"{self._conflict_target(conflict_columns)} DO UPDATE SET {sets}"
