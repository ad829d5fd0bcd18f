"""Result models returned by terminal builder calls."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PaginationResult(BaseModel):
    """One page of an offset-paginated query.

    Attributes:
        data: Rows (mappings or decoded records) on this page.
        total: Row count of the unpaginated query.
        per_page: Requested page size.
        current_page: 1-based page number.
        last_page: ``ceil(total / per_page)``.
        from_: 1-based index of the first row on the page (0 when empty).
            Serialised as ``from``.
        to: 1-based index of the last row on the page (0 when empty).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    data: list[Any] = Field(default_factory=list)
    total: int
    per_page: int
    current_page: int
    last_page: int
    from_: int = Field(alias="from")
    to: int


class KeysetPaginationResult(BaseModel):
    """One page of a keyset-paginated query.

    Attributes:
        data: Rows on this page.
        has_more: Whether further rows follow in the requested direction.
        next_cursor: Value of the last row's key column when ``has_more``.
        prev_cursor: Value of the first row's key column.
    """

    model_config = ConfigDict(extra="forbid")

    data: list[Any] = Field(default_factory=list)
    has_more: bool
    next_cursor: Any = None
    prev_cursor: Any = None


@dataclass(frozen=True)
class ExecResult:
    """Driver outcome of a write statement."""

    rows_affected: int = 0
    last_insert_id: int | None = None
