"""Execution context value object.

Every terminal builder call runs under an :class:`ExecutionContext`.  The
context carries a cancellation flag and an optional deadline; executors check
it immediately before dispatching a statement to the driver.  Child contexts
created with :meth:`ExecutionContext.with_timeout` are cancelled together with
their parent.
"""
from __future__ import annotations

import threading
import time

from querycraft.errors import QueryCancelledError


class ExecutionContext:
    """Cancellation-capable context threaded through terminal calls.

    Args:
        timeout: Optional number of seconds after which the context expires.
        parent: Optional parent context; cancelling the parent cancels this
            context and the earlier of both deadlines applies.
    """

    def __init__(
        self,
        timeout: float | None = None,
        parent: ExecutionContext | None = None,
    ) -> None:
        self._event = threading.Event()
        self._parent = parent
        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

    @property
    def deadline(self) -> float | None:
        """Monotonic-clock deadline, or ``None`` when the context never expires."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def cancel(self) -> None:
        self._event.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or ``None``."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def with_timeout(self, seconds: float) -> ExecutionContext:
        """Return a child context that expires after ``seconds``."""
        return ExecutionContext(timeout=seconds, parent=self)

    def raise_if_done(self) -> None:
        """Raise :class:`QueryCancelledError` if the context is finished.

        Raises:
            QueryCancelledError: When cancelled or past the deadline.
        """
        if self.cancelled:
            raise QueryCancelledError("Execution context was cancelled.", reason="cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise QueryCancelledError(
                "Execution context deadline exceeded.", reason="deadline_exceeded"
            )


def background() -> ExecutionContext:
    """Return a fresh context that is never cancelled and has no deadline."""
    return ExecutionContext()
