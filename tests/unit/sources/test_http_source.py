"""Unit tests for the HTTP upstream pool and HTTP source."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
import requests

from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError, ImagePipeConfigError
from sources.http_source import HTTPSource, build_http_upstream
from sources.http_upstream import HTTPUpstream, UpstreamStatus


@dataclass
class _FakeResponse:
    status_code: int
    content: bytes = b""


@dataclass
class _FakeSession:
    """Requests-like session answering from a url->response table."""

    responses: dict[str, _FakeResponse]
    down: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def get(self, url: str, timeout: float) -> _FakeResponse:
        self.calls.append(url)
        if url in self.down:
            raise requests.ConnectionError(f"{url} refused")
        return self.responses.get(url, _FakeResponse(404))


def test_health_check_marks_only_responding_hosts() -> None:
    """Hosts failing the ping should be excluded from selection."""
    session = _FakeSession(
        responses={"http://a/ping": _FakeResponse(200)}, down={"http://b/ping"}
    )
    upstream = HTTPUpstream(["http://a", "http://b"], ping_path="/ping", session=session)

    upstream.do_health_check()

    assert upstream.healthy_urls() == ["http://a"]


def test_round_robin_cycles_healthy_hosts() -> None:
    """Selection should rotate across healthy hosts."""
    session = _FakeSession(
        responses={"http://a/": _FakeResponse(200), "http://b/": _FakeResponse(204)}
    )
    upstream = HTTPUpstream(["http://a", "http://b"], ping_path="/", session=session)
    upstream.do_health_check()

    picks = [upstream.round_robin() for _ in range(4)]

    assert picks == ["http://a", "http://b", "http://a", "http://b"]


def test_round_robin_returns_none_without_healthy_hosts() -> None:
    """No healthy host should yield no selection."""
    upstream = HTTPUpstream(["http://a"], session=_FakeSession(responses={}))
    upstream.do_health_check()

    assert upstream.round_robin() is None


def test_status_listener_receives_transitions() -> None:
    """Listeners should hear each health change once."""
    session = _FakeSession(responses={"http://a": _FakeResponse(200)})
    upstream = HTTPUpstream(["http://a"], session=session)
    statuses: list[UpstreamStatus] = []
    upstream.on_status(statuses.append)

    upstream.do_health_check()
    upstream.do_health_check()
    session.down.add("http://a")
    upstream.do_health_check()

    assert statuses == [
        UpstreamStatus(url="http://a", healthy=True),
        UpstreamStatus(url="http://a", healthy=False),
    ]


def test_start_and_stop_health_check_thread() -> None:
    """The background poller should stop on request."""
    upstream = HTTPUpstream(
        ["http://a"], interval_seconds=0.01, session=_FakeSession(responses={})
    )

    upstream.start_health_check()
    upstream.stop_health_check()

    assert upstream.round_robin() is None


def test_find_fetches_from_healthy_host(encoded_image) -> None:
    """Request URIs should be unescaped and appended to the selected host."""
    payload = encoded_image(width=3, height=2)
    session = _FakeSession(
        responses={
            "http://a/ping": _FakeResponse(200),
            "http://a/img/cat 1.png": _FakeResponse(200, payload),
        }
    )
    upstream = HTTPUpstream(["http://a"], ping_path="/ping", session=session)
    upstream.do_health_check()
    source = HTTPSource(upstream, session=session)

    image = source.find(RequestContext.background(), "%2Fimg%2Fcat+1.png")

    assert (image.width, image.height) == (3, 2)


def test_find_without_healthy_host_is_backend_error() -> None:
    """Requests should fail when every host is down."""
    upstream = HTTPUpstream(["http://a"], session=_FakeSession(responses={}))
    source = HTTPSource(upstream)

    with pytest.raises(ImagePipeBackendError):
        source.find(RequestContext.background(), "/a.png")


def test_find_non_success_status_is_backend_error() -> None:
    """Upstream error statuses should not decode as images."""
    session = _FakeSession(responses={"http://a": _FakeResponse(200)})
    upstream = HTTPUpstream(["http://a"], session=session)
    upstream.do_health_check()

    with pytest.raises(ImagePipeBackendError):
        HTTPSource(upstream, session=session).find(RequestContext.background(), "/missing.png")


def test_build_http_upstream_splits_hosts_and_ping_path() -> None:
    """Comma-separated hosts should share scheme and ping path."""
    upstream = build_http_upstream("https://a.example.com,b.example.com:8443/health", 5.0)

    assert upstream.urls == ("https://a.example.com", "https://b.example.com:8443")


def test_build_http_upstream_rejects_missing_hosts() -> None:
    """URIs without hosts should be config errors."""
    with pytest.raises(ImagePipeConfigError):
        build_http_upstream("https:///health", 5.0)


def test_find_rejects_malformed_request_uri() -> None:
    """Broken percent escapes should fail before any host is contacted."""
    session = _FakeSession(responses={"http://a": _FakeResponse(200)})
    upstream = HTTPUpstream(["http://a"], session=session)
    upstream.do_health_check()

    with pytest.raises(ImagePipeArgumentError):
        HTTPSource(upstream, session=session).find(RequestContext.background(), "%zz")

    assert session.calls == ["http://a"]
