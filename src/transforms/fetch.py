"""Fetch images over HTTP.

This module downloads image bytes with requests and decodes them, and
builds the jobs that replace the current image with a fetched one.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import unquote_plus

import requests

from core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS, TASK_PROXY
from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError
from core.image import Image
from core.logging_config import get_logger
from pipeline.job import Job
from sources.base import Source

_LOGGER = get_logger(__name__)
_INVALID_ESCAPE_PATTERN = re.compile(r"%(?![0-9A-Fa-f]{2})")


def unescape_url_param(value: str) -> str:
    """Decode a query-escaped task argument, ``+`` meaning space.

    Raises:
        ImagePipeArgumentError: If a ``%`` is not followed by two hex digits.
    """
    if _INVALID_ESCAPE_PATTERN.search(value) is not None:
        raise ImagePipeArgumentError(
            f"Invalid URL escape in '{value}'. Percent-encode the argument and retry."
        )
    return unquote_plus(value)


def fetch_image_from_url(
    ctx: RequestContext,
    url: str,
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    session: Any | None = None,
) -> Image:
    """Download and decode the image at ``url``.

    Args:
        ctx: Request context bounding the call.
        url: Absolute image URL.
        timeout_seconds: Upper bound for the request.
        session: Optional requests-compatible session.

    Returns:
        Decoded image.

    Raises:
        ImagePipeBackendError: If the request fails or returns a non-2xx status.
    """
    timeout = ctx.timeout(timeout_seconds)
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as error:
        raise ImagePipeBackendError(f"Failed to fetch image from {url}: {error}") from error
    if response.status_code < 200 or response.status_code >= 300:
        raise ImagePipeBackendError(
            f"Failed to fetch image from {url}: unexpected status {response.status_code}."
        )
    _LOGGER.debug("image_fetched", url=url, size=len(response.content))
    return Image.from_bytes(response.content)


def new_proxy_image(
    url: str,
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    session: Any | None = None,
) -> Job:
    """Build a job that replaces the current image with the one at ``url``."""

    def handler(ctx: RequestContext, _: Image | None) -> Image:
        return fetch_image_from_url(ctx, url, timeout_seconds, session=session)

    return Job(task=TASK_PROXY, args=(url,), handler=handler)


def new_find_image(source_name: str, source: Source, params: tuple[str, ...]) -> Job:
    """Build a job that replaces the current image with ``source.find(*params)``."""

    def handler(ctx: RequestContext, _: Image | None) -> Image:
        return source.find(ctx, *params)

    return Job(task=source_name, args=params, handler=handler)
