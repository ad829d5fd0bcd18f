"""Unit tests for ExecutionContext and cancellation at the executor boundary."""

from __future__ import annotations

import time

import pytest

from querycraft import QueryCraft
from querycraft.context import ExecutionContext, background
from querycraft.errors import QueryCancelledError
from tests.fixtures import RecordingExecutor


def test_background_never_expires():
    ctx = background()
    assert ctx.deadline is None
    assert ctx.remaining() is None
    ctx.raise_if_done()


def test_cancel_raises_cancelled():
    ctx = ExecutionContext()
    ctx.cancel()
    with pytest.raises(QueryCancelledError) as info:
        ctx.raise_if_done()
    assert info.value.reason == "cancelled"


def test_deadline_exceeded():
    ctx = ExecutionContext(timeout=0)
    time.sleep(0.001)
    with pytest.raises(QueryCancelledError) as info:
        ctx.raise_if_done()
    assert info.value.reason == "deadline_exceeded"
    assert ctx.remaining() == 0.0


def test_child_inherits_parent_cancellation_and_earlier_deadline():
    parent = ExecutionContext(timeout=60)
    child = parent.with_timeout(3600)
    assert child.deadline == parent.deadline
    parent.cancel()
    assert child.cancelled
    assert not ExecutionContext(timeout=1, parent=ExecutionContext()).cancelled


def test_cancelled_context_stops_execution_before_dispatch():
    ex = RecordingExecutor(rows=[{"id": 1}])
    qc = QueryCraft(ex, "sqlite")
    ctx = ExecutionContext()
    ctx.cancel()
    with pytest.raises(QueryCancelledError):
        qc.select().from_("users").rows(ctx=ctx)
    with pytest.raises(QueryCancelledError):
        qc.update("users").set("a", 1).with_context(ctx).exec()
    assert ex.calls == []


def test_explicit_ctx_overrides_with_context():
    ex = RecordingExecutor(rows=[{"id": 1}])
    qc = QueryCraft(ex, "sqlite")
    dead = ExecutionContext()
    dead.cancel()
    q = qc.select().from_("users").with_context(dead)
    assert q.rows(ctx=background()) == [{"id": 1}]
