"""HTTP source backed by a health-checked upstream pool."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS, SOURCE_KIND_HTTP
from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError, ImagePipeConfigError
from core.image import Image
from sources.http_upstream import HTTPUpstream
from transforms.fetch import fetch_image_from_url, unescape_url_param


class HTTPSource:
    """Fetch ``<healthy host><request uri>`` with round-robin host selection."""

    kind = SOURCE_KIND_HTTP

    def __init__(
        self,
        upstream: HTTPUpstream,
        timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        session: Any | None = None,
    ) -> None:
        self._upstream = upstream
        self._timeout_seconds = timeout_seconds
        self._session = session

    @property
    def upstream(self) -> HTTPUpstream:
        return self._upstream

    def find(self, ctx: RequestContext, *params: str) -> Image:
        """Fetch the url-encoded request URI in ``params[0]`` from a healthy host.

        Raises:
            ImagePipeArgumentError: If no request URI is given.
            ImagePipeBackendError: If no host is healthy or the fetch fails.
        """
        if len(params) < 1:
            raise ImagePipeArgumentError("HTTP source requires one parameter: the request URI.")
        request_uri = unescape_url_param(params[0])
        base_url = self._upstream.round_robin()
        if base_url is None:
            raise ImagePipeBackendError(
                f"No healthy HTTP upstream among {', '.join(self._upstream.urls)}."
            )
        return fetch_image_from_url(
            ctx, base_url + request_uri, self._timeout_seconds, session=self._session
        )

    def close(self, ctx: RequestContext) -> None:
        self._upstream.stop_health_check()


def build_http_upstream(uri: str, interval_seconds: float) -> HTTPUpstream:
    """Build an upstream pool from ``scheme://host1,host2/ping-path``.

    Raises:
        ImagePipeConfigError: If the URI has no scheme or hosts.
    """
    parts = urlsplit(uri)
    hosts = [host.strip() for host in parts.netloc.split(",") if host.strip()]
    if not parts.scheme or not hosts:
        raise ImagePipeConfigError(
            f"Invalid HTTP source URI '{uri}': expected scheme://host[,host...]/ping-path."
        )
    urls = [f"{parts.scheme}://{host}" for host in hosts]
    return HTTPUpstream(urls, ping_path=parts.path, interval_seconds=interval_seconds)
