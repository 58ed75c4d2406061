"""Single-flight, process-lifetime connection cache.

The first caller for an address dials; concurrent callers for the same
address wait for that attempt and share its outcome. Successful connections
are kept for the life of the process. Failures are not cached, so the next
call dials again.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

from core.errors import ImagePipeCancelledError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class _InflightDial(Generic[T]):
    """One in-progress dial that waiters block on."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.connection: T | None = None
        self.error: BaseException | None = None


class ConnectionCache(Generic[T]):
    """Memoize ``dial(address, timeout_seconds)`` with concurrent first-use collapsing."""

    def __init__(self, dial: Callable[[str, float | None], T]) -> None:
        self._dial = dial
        self._lock = threading.Lock()
        self._connections: dict[str, T] = {}
        self._inflight: dict[str, _InflightDial[T]] = {}

    def get(self, address: str, timeout_seconds: float | None = None) -> T:
        """Return the cached connection for ``address``, dialing at most once at a time.

        Args:
            address: Connection target.
            timeout_seconds: Bound for this caller's dial or wait; None waits indefinitely.

        Raises:
            ImagePipeCancelledError: If a waiter's timeout passes before the dial finishes.
            BaseException: Whatever the dial raised, re-raised to every waiter.
        """
        with self._lock:
            connection = self._connections.get(address)
            if connection is not None:
                return connection
            call = self._inflight.get(address)
            leader = call is None
            if call is None:
                call = _InflightDial()
                self._inflight[address] = call
        if leader:
            self._run_dial(address, call, timeout_seconds)
        elif not call.done.wait(timeout_seconds):
            raise ImagePipeCancelledError(
                f"Timed out after {timeout_seconds}s waiting for the connection to {address}."
            )
        if call.error is not None:
            raise call.error
        assert call.connection is not None
        return call.connection

    def _run_dial(
        self, address: str, call: _InflightDial[T], timeout_seconds: float | None
    ) -> None:
        try:
            call.connection = self._dial(address, timeout_seconds)
        except BaseException as error:
            call.error = error
            _LOGGER.warning("connection_dial_failed", address=address, error=repr(error))
        finally:
            with self._lock:
                if call.error is None and call.connection is not None:
                    self._connections[address] = call.connection
                self._inflight.pop(address, None)
            call.done.set()
        if call.error is None:
            _LOGGER.info("connection_established", address=address)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
