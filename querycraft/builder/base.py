"""Shared builder plumbing: rendering, cloning and observed execution.

Every statement builder renders neutral SQL in :meth:`Builder.build`.  The
base class turns that into dialect SQL, prints it when asked, times the
executor call and reports it to the query logger.
"""
from __future__ import annotations

import copy
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from querycraft.context import ExecutionContext, background
from querycraft.dialect.base import Dialect
from querycraft.executor.base import Executor
from querycraft.log import NullQueryLogger, QueryLogger
from querycraft.schema.results import ExecResult
from querycraft.schema.values import inline_args

B = TypeVar("B", bound="Builder")
T = TypeVar("T")

#: Attributes shared by reference between a builder and its clones.
_SHARED_ATTRS = ("_executor", "_dialect", "_logger", "_ctx")


class Builder(ABC):
    """Base class for statement builders.

    Args:
        executor: Executor terminal calls run on.
        dialect: Dialect used for quoting and placeholders.
        logger: Receives one entry per execution.
        print_sql: Print each statement, arguments inlined, before it runs.
    """

    def __init__(
        self,
        executor: Executor,
        dialect: Dialect,
        logger: QueryLogger | None = None,
        print_sql: bool = False,
    ) -> None:
        self._executor = executor
        self._dialect = dialect
        self._logger: QueryLogger = logger if logger is not None else NullQueryLogger()
        self._ctx: ExecutionContext | None = None
        self._print_sql = print_sql

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @abstractmethod
    def build(self) -> tuple[str, list[Any]]:
        """Render the statement with neutral ``?`` markers.

        Rendering does not change the builder.

        Returns:
            ``(sql, args)`` with one argument per marker, in order.
        """

    def to_sql(self) -> tuple[str, list[Any]]:
        """Render the statement with this dialect's placeholders."""
        sql, args = self.build()
        return self._dialect.rebind(sql), args

    def debug(self) -> str:
        """Return the statement with arguments inlined as literals.

        For display only; never execute the result.
        """
        sql, args = self.build()
        return inline_args(sql, args)

    def print_sql(self: B, enabled: bool = True) -> B:
        self._print_sql = enabled
        return self

    def with_context(self: B, ctx: ExecutionContext) -> B:
        """Run terminal calls under ``ctx`` unless one is passed explicitly."""
        self._ctx = ctx
        return self

    def clone(self: B) -> B:
        """Return an independent deep copy.

        The executor, dialect, logger and context are shared; every clause
        slot is copied.
        """
        memo: dict[int, Any] = {}
        for name in _SHARED_ATTRS:
            value = getattr(self, name, None)
            if value is not None:
                memo[id(value)] = value
        return copy.deepcopy(self, memo)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _context(self, ctx: ExecutionContext | None) -> ExecutionContext:
        if ctx is not None:
            return ctx
        if self._ctx is not None:
            return self._ctx
        return background()

    def _observe(
        self,
        sql: str,
        args: Sequence[Any],
        ctx: ExecutionContext,
        run: Callable[[str, Sequence[Any]], T],
    ) -> T:
        """Run ``run(dialect_sql, args)`` timed and logged."""
        if self._print_sql:
            print(inline_args(sql, args))
        bound = self._dialect.rebind(sql)
        error: BaseException | None = None
        start = time.perf_counter()
        try:
            return run(bound, args)
        except Exception as exc:
            error = exc
            raise
        finally:
            self._logger.log_query(ctx, sql, args, time.perf_counter() - start, error)

    def _execute(
        self,
        ctx: ExecutionContext | None = None,
        statement: tuple[str, list[Any]] | None = None,
    ) -> ExecResult:
        sql, args = statement if statement is not None else self.build()
        context = self._context(ctx)
        return self._observe(
            sql, args, context, lambda s, a: self._executor.execute(s, a, context)
        )

    def _fetch_rows(
        self,
        ctx: ExecutionContext | None = None,
        statement: tuple[str, list[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        sql, args = statement if statement is not None else self.build()
        context = self._context(ctx)
        return self._observe(
            sql, args, context, lambda s, a: self._executor.fetch_rows(s, a, context)
        )

    def _fetch_row(
        self,
        ctx: ExecutionContext | None = None,
        statement: tuple[str, list[Any]] | None = None,
    ) -> dict[str, Any]:
        sql, args = statement if statement is not None else self.build()
        context = self._context(ctx)
        return self._observe(
            sql, args, context, lambda s, a: self._executor.fetch_row(s, a, context)
        )

    def _fetch_one(self, model: type[T], ctx: ExecutionContext | None = None) -> T:
        sql, args = self.build()
        context = self._context(ctx)
        return self._observe(
            sql, args, context, lambda s, a: self._executor.fetch_one(model, s, a, context)
        )

    def _fetch_all(self, model: type[T], ctx: ExecutionContext | None = None) -> list[T]:
        sql, args = self.build()
        context = self._context(ctx)
        return self._observe(
            sql, args, context, lambda s, a: self._executor.fetch_all(model, s, a, context)
        )
