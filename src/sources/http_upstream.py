"""Health-checked round-robin pool of HTTP upstream hosts.

Each host is pinged on ``ping_path``; only hosts answering 2xx are handed out.
A background thread repeats the check until ``stop_health_check`` is called.
"""

from __future__ import annotations

from dataclasses import dataclass
import itertools
import threading
from typing import Any, Callable

import requests

from core.constants import DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_PING_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True)
class UpstreamStatus:
    """Health transition reported to status listeners."""

    url: str
    healthy: bool


StatusListener = Callable[[UpstreamStatus], None]


class HTTPUpstream:
    """Round-robin selector over healthy upstream base URLs."""

    def __init__(
        self,
        urls: list[str],
        ping_path: str = "",
        interval_seconds: float = DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS,
        session: Any | None = None,
    ) -> None:
        self._urls = list(urls)
        self._ping_path = ping_path
        self._interval_seconds = interval_seconds
        self._session = session or requests.Session()
        self._healthy: dict[str, bool] = {url: False for url in self._urls}
        self._counter = itertools.count()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._listener: StatusListener | None = None

    @property
    def urls(self) -> tuple[str, ...]:
        return tuple(self._urls)

    def on_status(self, listener: StatusListener) -> None:
        self._listener = listener

    def healthy_urls(self) -> list[str]:
        with self._lock:
            return [url for url in self._urls if self._healthy[url]]

    def round_robin(self) -> str | None:
        """Return the next healthy URL, or None when every host is sick."""
        healthy = self.healthy_urls()
        if not healthy:
            return None
        return healthy[next(self._counter) % len(healthy)]

    def do_health_check(self) -> None:
        """Ping every host once and record transitions."""
        for url in self._urls:
            healthy = self._ping(url)
            with self._lock:
                changed = self._healthy[url] != healthy
                self._healthy[url] = healthy
            if changed:
                self._report(UpstreamStatus(url=url, healthy=healthy))

    def start_health_check(self) -> None:
        """Start the background polling thread if it is not running."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._health_check_loop, name="imagepipe-upstream-health", daemon=True
        )
        self._thread.start()

    def stop_health_check(self) -> None:
        """Stop background polling and wait for the thread to exit."""
        self._stop_event.set()
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._interval_seconds)

    def _health_check_loop(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            self.do_health_check()

    def _ping(self, url: str) -> bool:
        try:
            response = self._session.get(url + self._ping_path, timeout=_PING_TIMEOUT_SECONDS)
        except requests.RequestException as error:
            _LOGGER.debug("upstream_ping_failed", url=url, error=str(error))
            return False
        return 200 <= response.status_code < 300

    def _report(self, status: UpstreamStatus) -> None:
        _LOGGER.info("upstream_status_changed", url=status.url, healthy=status.healthy)
        if self._listener is not None:
            self._listener(status)
