"""SDK client wiring config, source registry, parser, and engine together."""

from __future__ import annotations

import time
from typing import Any

from core.config import PipelineConfig
from core.context import RequestContext
from core.errors import ImagePipeArgumentError
from core.image import Image
from core.logging_config import get_logger
from optimizer.optimizer_client import do_optim
from pipeline.engine import do
from pipeline.job import Job
from pipeline.parser import ChainParser
from sources.base import Source
from sources.registry import SourceRegistry, default_registry
from transforms.optimize import OptimizeCall

_LOGGER = get_logger(__name__)


class ImagePipeClient:
    """Primary SDK entry point for running task chains."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        registry: SourceRegistry | None = None,
        optimize_call: OptimizeCall = do_optim,
        session: Any | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._registry = registry or default_registry()
        self._parser = ChainParser(
            registry=self._registry,
            config=self._config,
            optimize_call=optimize_call,
            session=session,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    def add_source(self, name: str, uri: str) -> Source:
        """Build and register the source variant selected by ``uri``."""
        return self._registry.add_source(name, uri, self._config)

    def add_sources(self, entries: tuple[tuple[str, str], ...]) -> None:
        for name, uri in entries:
            self.add_source(name, uri)

    def add_sources_from_config(self) -> None:
        """Register every source declared in the client config."""
        self.add_sources(self._config.sources)

    def parse(self, task_pipeline: str, accept: str = "") -> list[Job]:
        return self._parser.parse(task_pipeline, accept)

    def run(
        self,
        task_pipeline: str,
        accept: str = "",
        image: Image | None = None,
        timeout: float | None = None,
        ctx: RequestContext | None = None,
    ) -> Image:
        """Parse and execute ``task_pipeline``.

        Args:
            task_pipeline: ``|``-separated task specs.
            accept: Accept-like media type list for autoOptimize.
            image: Optional initial image.
            timeout: Optional overall deadline in seconds.
            ctx: Optional parent request context.

        Returns:
            Final image.

        Raises:
            ImagePipeArgumentError: If the chain does not parse or produces no image.
            ImagePipeError: Any failure raised by a job.
        """
        jobs = self.parse(task_pipeline, accept)
        request_ctx = ctx or RequestContext.background()
        if timeout is not None:
            request_ctx = request_ctx.with_timeout(timeout)
        started_at = time.monotonic()
        result = do(request_ctx, image, jobs)
        if result is None:
            raise ImagePipeArgumentError(
                f"Task chain '{task_pipeline}' produced no image. "
                "Start the chain with a source or proxy task."
            )
        _LOGGER.info(
            "pipeline_finished",
            tasks=[job.task for job in jobs],
            width=result.width,
            height=result.height,
            format=result.format,
            elapsed_seconds=round(time.monotonic() - started_at, 6),
        )
        return result

    def close(self, ctx: RequestContext | None = None) -> None:
        """Close every source in the client's registry."""
        self._registry.close_all(ctx or RequestContext.background())
