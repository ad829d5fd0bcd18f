"""Custom exception hierarchy for querycraft.

All library errors inherit from QueryCraftError so callers can catch the base
class for any querycraft-specific failure.  Driver errors and record decoding
errors (``pydantic.ValidationError``) are never wrapped; they reach the caller
exactly as the underlying layer raised them.
"""
from __future__ import annotations


class QueryCraftError(Exception):
    """Base exception for all querycraft errors."""


class NoRowsError(QueryCraftError):
    """Raised when a single-row terminal call finds an empty result set.

    Distinct from execution failures so callers can branch on existence.

    Args:
        sql: The statement that produced no rows.
    """

    def __init__(self, sql: str | None = None) -> None:
        super().__init__("Query returned no rows.")
        self.sql = sql


class UnsupportedValueError(QueryCraftError):
    """Raised when ``values()`` receives a shape it cannot turn into a row.

    Supported shapes are positional scalars, records with a resolvable
    descriptor, mappings, and lists or tuples of those.

    Args:
        value: The offending value.
    """

    def __init__(self, value: object) -> None:
        self.value_type = type(value).__name__
        super().__init__(
            f"Unsupported value shape for values(): {self.value_type}. "
            "Pass positional scalars, a mapping, a record, or a list of them."
        )


class DialectError(QueryCraftError):
    """Raised when a dialect cannot be resolved, a paramstyle is unknown, or
    the engine lacks a requested statement form.

    Args:
        message: Human-readable description.
        name: The dialect or paramstyle name that failed to resolve.
    """

    def __init__(self, message: str, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class TransactionError(QueryCraftError):
    """Raised on invalid transaction use (nesting, use after commit)."""


class QueryCancelledError(QueryCraftError):
    """Raised when an execution context is cancelled or past its deadline.

    Args:
        message: Human-readable description.
        reason: ``'cancelled'`` or ``'deadline_exceeded'``.
    """

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason
