"""Task-chain DSL parser.

A chain is ``|``-separated task specs; each spec is ``/``-separated tokens.
The first token selects the task kind. Any unrecognized first token is a
source name, and the whole token list becomes a fetch-via-source step, so
new sources need no grammar change. Parsing is all-or-nothing.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable

from core.config import PipelineConfig
from core.constants import (
    ARGUMENT_SEPARATOR,
    SUPPORTED_POSITIONS,
    TASK_AUTO_OPTIMIZE,
    TASK_FILL_RESIZE,
    TASK_FIT_RESIZE,
    TASK_OPTIMIZE,
    TASK_PROXY,
    TASK_SEPARATOR,
    TASK_WATERMARK,
)
from core.context import RequestContext
from core.errors import ImagePipeArgumentError
from optimizer.optimizer_client import do_optim
from pipeline.job import Job
from sources.registry import SourceRegistry, default_registry
from transforms.fetch import (
    fetch_image_from_url,
    new_find_image,
    new_proxy_image,
    unescape_url_param,
)
from transforms.optimize import OptimizeCall, new_auto_optimize_image, new_optimize_image
from transforms.resize import new_fill_resize_image, new_fit_resize_image
from transforms.watermark import new_watermark

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")

TaskParser = Callable[[list[str], str], Job]


class ChainParser:
    """Compile task-chain strings into jobs bound to one registry and config."""

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        config: PipelineConfig | None = None,
        optimize_call: OptimizeCall = do_optim,
        session: Any | None = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._config = config or PipelineConfig()
        self._optimize_call = optimize_call
        self._session = session
        self._parsers: dict[str, TaskParser] = {
            TASK_PROXY: self._parse_proxy,
            TASK_OPTIMIZE: self._parse_optimize,
            TASK_AUTO_OPTIMIZE: self._parse_auto_optimize,
            TASK_FIT_RESIZE: self._parse_fit_resize,
            TASK_FILL_RESIZE: self._parse_fill_resize,
            TASK_WATERMARK: self._parse_watermark,
        }

    def parse(self, task_pipeline: str, accept: str = "") -> list[Job]:
        """Parse ``task_pipeline`` into ordered jobs.

        Args:
            task_pipeline: ``|``-separated task specs.
            accept: Accept-like media type list consulted by autoOptimize.

        Returns:
            Jobs in chain order.

        Raises:
            ImagePipeArgumentError: If any task spec has invalid arguments.
            ImagePipeNotFoundError: If a fallback source name is not registered.
        """
        jobs: list[Job] = []
        for task_spec in task_pipeline.split(TASK_SEPARATOR):
            tokens = task_spec.split(ARGUMENT_SEPARATOR)
            parser = self._parsers.get(tokens[0])
            if parser is None:
                jobs.append(self._parse_source(tokens, accept))
            else:
                jobs.append(parser(tokens[1:], accept))
        return jobs

    def _parse_proxy(self, params: list[str], _: str) -> Job:
        if len(params) == 0 or not params[0]:
            raise ImagePipeArgumentError("proxy task requires a url: proxy/<url-encoded url>.")
        return new_proxy_image(
            unescape_url_param(params[0]), self._config.fetch_timeout_seconds, self._session
        )

    def _parse_optimize(self, params: list[str], _: str) -> Job:
        if len(params) == 0 or not params[0]:
            raise ImagePipeArgumentError(
                "optimize task requires an address: optimize/<addr>[/<quality>][/<format>]."
            )
        quality = parse_int(params[1]) if len(params) > 1 else 0
        output_format = params[2] if len(params) > 2 and params[2] else None
        return new_optimize_image(
            params[0],
            quality,
            output_format,
            self._config.optimize_timeout_seconds,
            self._optimize_call,
        )

    def _parse_auto_optimize(self, params: list[str], accept: str) -> Job:
        if len(params) == 0 or not params[0]:
            raise ImagePipeArgumentError(
                "autoOptimize task requires an address: autoOptimize/<addr>[/<quality>]."
            )
        quality = parse_int(params[1]) if len(params) > 1 else 0
        return new_auto_optimize_image(
            params[0],
            quality,
            accept,
            self._config.optimize_timeout_seconds,
            self._optimize_call,
        )

    def _parse_fit_resize(self, params: list[str], _: str) -> Job:
        width, height = _parse_dimensions(TASK_FIT_RESIZE, params)
        return new_fit_resize_image(width, height)

    def _parse_fill_resize(self, params: list[str], _: str) -> Job:
        width, height = _parse_dimensions(TASK_FILL_RESIZE, params)
        return new_fill_resize_image(width, height)

    def _parse_watermark(self, params: list[str], _: str) -> Job:
        if len(params) < 2 or not params[0]:
            raise ImagePipeArgumentError(
                "watermark task requires a url and a position: "
                "watermark/<url-encoded url>/<position>[/<angle>]."
            )
        position = params[1]
        if position not in SUPPORTED_POSITIONS:
            raise ImagePipeArgumentError(
                f"Unsupported watermark position '{position}'. "
                f"Choose one of: {', '.join(SUPPORTED_POSITIONS)}."
            )
        angle = _parse_float(params[2]) if len(params) > 2 else 0.0
        watermark_url = unescape_url_param(params[0])
        timeout_seconds = self._config.fetch_timeout_seconds
        session = self._session

        def load_watermark(ctx: RequestContext) -> Any:
            return fetch_image_from_url(ctx, watermark_url, timeout_seconds, session=session).grid

        return new_watermark(load_watermark, position, angle)

    def _parse_source(self, tokens: list[str], _: str) -> Job:
        source = self._registry.get(tokens[0])
        return new_find_image(tokens[0], source, tuple(tokens[1:]))


def parse(
    task_pipeline: str,
    accept: str = "",
    registry: SourceRegistry | None = None,
    config: PipelineConfig | None = None,
) -> list[Job]:
    """Parse a task chain against the given (or process-wide) registry."""
    return ChainParser(registry=registry, config=config).parse(task_pipeline, accept)


def parse_int(value: str) -> int:
    """Parse a decimal integer; anything unparsable is 0."""
    if _INTEGER_PATTERN.fullmatch(value) is None:
        return 0
    return int(value)


def _parse_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _parse_dimensions(task: str, params: list[str]) -> tuple[int, int]:
    if len(params) != 2:
        raise ImagePipeArgumentError(
            f"{task} task requires exactly width and height: {task}/<width>/<height>."
        )
    return parse_int(params[0]), parse_int(params[1])
