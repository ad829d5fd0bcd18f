"""Predicate assembly shared by WHERE and HAVING clauses.

A :class:`ConditionAssembler` stores :class:`Fragment` objects in insertion
order and renders them into one boolean expression plus a position-matched
argument list.  :class:`ConditionMixin` supplies the public ``where*`` /
``or_where*`` methods to every builder with a WHERE clause and to
:class:`ConditionScope`, the isolated object handed to group callbacks.

Rendering rule: the first fragment is emitted bare; every later fragment is
prefixed with its own connective unless its text already begins with
``AND `` or ``OR ``.  A leading connective left on the joined string is
stripped.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from querycraft.dialect.base import BIND, Dialect

if TYPE_CHECKING:
    from querycraft.builder.select import Select

AND = "AND"
OR = "OR"

_CONNECTIVE_PREFIXES = ("AND ", "OR ")

#: Predicates substituted for an IN list with no values.
ALWAYS_FALSE = "1 = 0"
ALWAYS_TRUE = "1 = 1"

C = TypeVar("C", bound="ConditionMixin")


@dataclass(frozen=True)
class Fragment:
    """One rendered predicate.

    Attributes:
        text: Predicate SQL with neutral ``?`` markers.
        args: Positional arguments for the markers in ``text``.
        connective: ``AND`` or ``OR``; joins the fragment to its predecessor.
    """

    text: str
    args: tuple[Any, ...] = ()
    connective: str = AND


def _starts_with_connective(text: str) -> bool:
    return text[:4].upper().startswith(_CONNECTIVE_PREFIXES)


class ConditionAssembler:
    """Ordered list of fragments with a one-shot renderer."""

    def __init__(self, fragments: Iterable[Fragment] = ()) -> None:
        self._fragments: list[Fragment] = list(fragments)

    def __len__(self) -> int:
        return len(self._fragments)

    def __bool__(self) -> bool:
        return bool(self._fragments)

    @property
    def fragments(self) -> tuple[Fragment, ...]:
        return tuple(self._fragments)

    def add(self, text: str, args: Iterable[Any] = (), connective: str = AND) -> None:
        self._fragments.append(Fragment(text=text, args=tuple(args), connective=connective))

    def clear(self) -> None:
        self._fragments.clear()

    def copy(self) -> ConditionAssembler:
        return ConditionAssembler(self._fragments)

    def render(self) -> tuple[str, list[Any]]:
        """Join the fragments into one expression.

        Returns:
            ``(sql, args)``; ``("", [])`` when no fragment was added.
        """
        parts: list[str] = []
        args: list[Any] = []
        for fragment in self._fragments:
            text = fragment.text.strip()
            if parts and not _starts_with_connective(text):
                text = f"{fragment.connective} {text}"
            parts.append(text)
            args.extend(fragment.args)
        sql = " ".join(parts)
        if _starts_with_connective(sql):
            sql = sql.split(" ", 1)[1].lstrip() if " " in sql else ""
        return sql, args


class ConditionMixin:
    """Public predicate methods.

    Hosts provide ``_dialect`` and ``_conditions()``, the assembler the
    methods append to.  Every method returns the host for chaining.
    """

    _dialect: Dialect

    def _conditions(self) -> ConditionAssembler:
        raise NotImplementedError

    def _add(self: C, text: str, args: Iterable[Any], connective: str) -> C:
        self._conditions().add(text, args, connective)
        return self

    # ------------------------------------------------------------------
    # Fragment renderers
    # ------------------------------------------------------------------

    def _compare(self: C, column: str, operator: str, value: Any, connective: str) -> C:
        col = self._dialect.quote_column(column)
        return self._add(f"{col} {operator} {BIND}", (value,), connective)

    def _in(self: C, column: str, values: tuple[Any, ...], negate: bool, connective: str) -> C:
        if not values:
            return self._add(ALWAYS_TRUE if negate else ALWAYS_FALSE, (), connective)
        col = self._dialect.quote_column(column)
        markers = ", ".join(BIND for _ in values)
        keyword = "NOT IN" if negate else "IN"
        return self._add(f"{col} {keyword} ({markers})", values, connective)

    def _null(self: C, column: str, negate: bool, connective: str) -> C:
        col = self._dialect.quote_column(column)
        test = "IS NOT NULL" if negate else "IS NULL"
        return self._add(f"{col} {test}", (), connective)

    def _between(
        self: C, column: str, low: Any, high: Any, negate: bool, connective: str
    ) -> C:
        col = self._dialect.quote_column(column)
        keyword = "NOT BETWEEN" if negate else "BETWEEN"
        return self._add(f"{col} {keyword} {BIND} AND {BIND}", (low, high), connective)

    def _exists(self: C, subquery: Select, negate: bool, connective: str) -> C:
        sql, args = subquery.build()
        keyword = "NOT EXISTS" if negate else "EXISTS"
        return self._add(f"{keyword} ({sql})", args, connective)

    def _group(self: C, fn: Callable[[ConditionScope], Any], connective: str) -> C:
        scope = ConditionScope(self._dialect)
        fn(scope)
        sql, args = scope._where.render()
        if not sql:
            return self
        return self._add(f"({sql})", args, connective)

    # ------------------------------------------------------------------
    # AND
    # ------------------------------------------------------------------

    def where(self: C, column: str, operator: str, value: Any) -> C:
        """Add ``column operator ?``.  The operator is inserted as written."""
        return self._compare(column, operator, value, AND)

    def where_eq(self: C, column: str, value: Any) -> C:
        return self._compare(column, "=", value, AND)

    def where_in(self: C, column: str, *values: Any) -> C:
        """Add ``column IN (?, ...)``; no values adds an always-false predicate."""
        return self._in(column, values, False, AND)

    def where_not_in(self: C, column: str, *values: Any) -> C:
        """Add ``column NOT IN (?, ...)``; no values adds an always-true predicate."""
        return self._in(column, values, True, AND)

    def where_null(self: C, column: str) -> C:
        return self._null(column, False, AND)

    def where_not_null(self: C, column: str) -> C:
        return self._null(column, True, AND)

    def where_between(self: C, column: str, low: Any, high: Any) -> C:
        return self._between(column, low, high, False, AND)

    def where_not_between(self: C, column: str, low: Any, high: Any) -> C:
        return self._between(column, low, high, True, AND)

    def where_raw(self: C, condition: str, *args: Any) -> C:
        """Add ``condition`` verbatim; ``args`` must match its markers."""
        return self._add(condition, args, AND)

    def where_exists(self: C, subquery: Select) -> C:
        return self._exists(subquery, False, AND)

    def where_not_exists(self: C, subquery: Select) -> C:
        return self._exists(subquery, True, AND)

    def where_group(self: C, fn: Callable[[ConditionScope], Any]) -> C:
        """Add the predicates ``fn`` builds on a fresh scope, parenthesised.

        Example::

            q.where_eq("status", "active").where_group(
                lambda g: g.where("age", ">=", 18).where("age", "<=", 65)
            )
            # ... WHERE `status` = ? AND (`age` >= ? AND `age` <= ?)
        """
        return self._group(fn, AND)

    # ------------------------------------------------------------------
    # OR
    # ------------------------------------------------------------------

    def or_where(self: C, column: str, operator: str, value: Any) -> C:
        return self._compare(column, operator, value, OR)

    def or_where_eq(self: C, column: str, value: Any) -> C:
        return self._compare(column, "=", value, OR)

    def or_where_in(self: C, column: str, *values: Any) -> C:
        return self._in(column, values, False, OR)

    def or_where_not_in(self: C, column: str, *values: Any) -> C:
        return self._in(column, values, True, OR)

    def or_where_null(self: C, column: str) -> C:
        return self._null(column, False, OR)

    def or_where_not_null(self: C, column: str) -> C:
        return self._null(column, True, OR)

    def or_where_between(self: C, column: str, low: Any, high: Any) -> C:
        return self._between(column, low, high, False, OR)

    def or_where_not_between(self: C, column: str, low: Any, high: Any) -> C:
        return self._between(column, low, high, True, OR)

    def or_where_raw(self: C, condition: str, *args: Any) -> C:
        return self._add(condition, args, OR)

    def or_where_exists(self: C, subquery: Select) -> C:
        return self._exists(subquery, False, OR)

    def or_where_not_exists(self: C, subquery: Select) -> C:
        return self._exists(subquery, True, OR)

    def or_where_group(self: C, fn: Callable[[ConditionScope], Any]) -> C:
        return self._group(fn, OR)

    # ------------------------------------------------------------------
    # Conditional
    # ------------------------------------------------------------------

    def when(self: C, condition: Any, column: str, operator: str, value: Any) -> C:
        """Apply ``where(column, operator, value)`` only if ``condition`` is truthy."""
        if condition:
            return self.where(column, operator, value)
        return self

    def when_eq(self: C, condition: Any, column: str, value: Any) -> C:
        """Apply ``where_eq(column, value)`` only if ``condition`` is truthy."""
        if condition:
            return self.where_eq(column, value)
        return self

    def when_func(self: C, condition: Any, fn: Callable[[C], Any]) -> C:
        """Call ``fn(self)`` only if ``condition`` is truthy."""
        if condition:
            fn(self)
        return self


class ConditionScope(ConditionMixin):
    """Isolated predicate list handed to ``where_group`` callbacks."""

    def __init__(self, dialect: Dialect) -> None:
        self._dialect = dialect
        self._where = ConditionAssembler()

    def _conditions(self) -> ConditionAssembler:
        return self._where

    def build(self) -> tuple[str, list[Any]]:
        return self._where.render()
