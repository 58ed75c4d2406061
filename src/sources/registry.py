"""Process-wide registry of named image sources.

Registration is rare (startup or admin time) while lookups happen on every
request, so a single lock guards short dictionary operations only. Building a
source client happens outside the lock; publishing it is atomic.
"""

from __future__ import annotations

import threading
from typing import Callable

from core.config import PipelineConfig
from core.constants import (
    SCHEME_ALIYUN,
    SCHEME_HTTP,
    SCHEME_HTTPS,
    SCHEME_MINIO,
    SCHEME_MONGODB,
)
from core.context import RequestContext
from core.errors import ImagePipeInvalidEntryError, ImagePipeNotFoundError
from core.logging_config import get_logger
from sources.base import Source
from sources.file_source import FileSource
from sources.gridfs_source import build_gridfs_source
from sources.http_source import HTTPSource, build_http_upstream
from sources.http_upstream import StatusListener
from sources.s3_source import build_aliyun_oss_source, build_minio_source

_LOGGER = get_logger(__name__)


class SourceRegistry:
    """Thread-safe mapping from source name to source implementation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sources: dict[str, object] = {}

    def register(self, name: str, source: object) -> None:
        """Store ``source`` under ``name``; the last registration wins."""
        with self._lock:
            self._sources[name] = source
        _LOGGER.info("source_registered", name=name, kind=getattr(source, "kind", "unknown"))

    def get(self, name: str) -> Source:
        """Look up a source by name.

        Raises:
            ImagePipeNotFoundError: If nothing is registered under ``name``.
            ImagePipeInvalidEntryError: If the stored value is not a source.
        """
        with self._lock:
            value = self._sources.get(name)
            found = name in self._sources
        if not found:
            raise ImagePipeNotFoundError(
                f"Source '{name}' is not registered. Register it before using it in a task chain."
            )
        if not isinstance(value, Source):
            raise ImagePipeInvalidEntryError(
                f"Source '{name}' is invalid: {type(value).__name__} does not implement find/close."
            )
        return value

    def range(self, visit: Callable[[str, Source], None]) -> None:
        """Call ``visit`` for each valid entry in a snapshot of the registry."""
        with self._lock:
            entries = list(self._sources.items())
        for name, value in entries:
            if isinstance(value, Source):
                visit(name, value)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._sources)

    def close_all(self, ctx: RequestContext) -> None:
        """Close and drop every registered source."""
        with self._lock:
            entries = list(self._sources.items())
            self._sources.clear()
        for name, value in entries:
            if isinstance(value, Source):
                value.close(ctx)
                _LOGGER.info("source_closed", name=name, kind=value.kind)

    def add_file_source(self, name: str, base_path: str) -> FileSource:
        source = FileSource(base_path)
        self.register(name, source)
        return source

    def add_http_source(
        self,
        name: str,
        uri: str,
        config: PipelineConfig | None = None,
        on_status: StatusListener | None = None,
    ) -> HTTPSource:
        """Register an HTTP source and start health-checking its hosts."""
        config = config or PipelineConfig()
        upstream = build_http_upstream(uri, config.health_check_interval_seconds)
        if on_status is not None:
            upstream.on_status(on_status)
        upstream.do_health_check()
        upstream.start_health_check()
        source = HTTPSource(upstream, timeout_seconds=config.fetch_timeout_seconds)
        self.register(name, source)
        return source

    def add_minio_source(
        self, name: str, uri: str, config: PipelineConfig | None = None
    ) -> Source:
        config = config or PipelineConfig()
        source = build_minio_source(uri, config.fetch_timeout_seconds)
        self.register(name, source)
        return source

    def add_gridfs_source(
        self, name: str, uri: str, config: PipelineConfig | None = None
    ) -> Source:
        config = config or PipelineConfig()
        source = build_gridfs_source(uri, config.fetch_timeout_seconds)
        self.register(name, source)
        return source

    def add_aliyun_oss_source(
        self, name: str, uri: str, config: PipelineConfig | None = None
    ) -> Source:
        config = config or PipelineConfig()
        source = build_aliyun_oss_source(uri, config.fetch_timeout_seconds)
        self.register(name, source)
        return source

    def add_source(self, name: str, uri: str, config: PipelineConfig | None = None) -> Source:
        """Build the source variant selected by the URI scheme and register it.

        Raises:
            ImagePipeConfigError: If the URI is malformed for its scheme.
            ImagePipeDependencyError: If the backend library is missing.
        """
        if uri.startswith(SCHEME_MINIO):
            return self.add_minio_source(name, uri, config)
        if uri.startswith(SCHEME_MONGODB):
            return self.add_gridfs_source(name, uri, config)
        if uri.startswith(SCHEME_ALIYUN):
            return self.add_aliyun_oss_source(
                name, uri.replace(SCHEME_ALIYUN, SCHEME_HTTPS, 1), config
            )
        if uri.startswith(SCHEME_HTTP) or uri.startswith(SCHEME_HTTPS):
            return self.add_http_source(name, uri, config)
        return self.add_file_source(name, uri)


_DEFAULT_REGISTRY = SourceRegistry()


def default_registry() -> SourceRegistry:
    """Return the process-wide registry."""
    return _DEFAULT_REGISTRY


def register_source(name: str, source: object) -> None:
    _DEFAULT_REGISTRY.register(name, source)


def get_source(name: str) -> Source:
    return _DEFAULT_REGISTRY.get(name)


def range_sources(visit: Callable[[str, Source], None]) -> None:
    _DEFAULT_REGISTRY.range(visit)


def add_source(name: str, uri: str, config: PipelineConfig | None = None) -> Source:
    return _DEFAULT_REGISTRY.add_source(name, uri, config)
