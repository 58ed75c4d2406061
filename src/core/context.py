"""Request-scoped cancellation and deadline propagation.

Every job and source receives a ``RequestContext`` so a cancelled or expired
request stops issuing backend calls instead of leaking them.
"""

from __future__ import annotations

import threading
import time

from core.errors import ImagePipeCancelledError


class RequestContext:
    """Cancellation flag plus an optional monotonic deadline."""

    def __init__(
        self,
        deadline: float | None = None,
        parent: "RequestContext | None" = None,
    ) -> None:
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline
        self._parent = parent
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> "RequestContext":
        """Return a context that never expires on its own."""
        return cls()

    def with_timeout(self, seconds: float) -> "RequestContext":
        """Derive a child context that expires after ``seconds``."""
        return RequestContext(deadline=time.monotonic() + seconds, parent=self)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        if self._parent is not None and self._parent.cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancelled.set()

    def check(self) -> None:
        """Raise if the context is no longer usable.

        Raises:
            ImagePipeCancelledError: If cancelled or past the deadline.
        """
        if self._cancelled.is_set() or (self._parent is not None and self._parent.cancelled):
            raise ImagePipeCancelledError("Request was cancelled before the backend call.")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise ImagePipeCancelledError("Request deadline exceeded before the backend call.")

    def timeout(self, default_seconds: float) -> float:
        """Return seconds left for a backend call, bounded by ``default_seconds``.

        Raises:
            ImagePipeCancelledError: If no time is left.
        """
        self.check()
        if self._deadline is None:
            return default_seconds
        return min(default_seconds, self._deadline - time.monotonic())
