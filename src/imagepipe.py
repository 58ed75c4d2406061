"""Public SDK surface for imagepipe.

This module provides a stable import path for library users.
It re-exports the client, the engine entry points, and the typed models.
"""

from __future__ import annotations

from core.config import PipelineConfig
from core.context import RequestContext
from core.errors import (
    AbortNext,
    ImagePipeArgumentError,
    ImagePipeBackendError,
    ImagePipeCancelledError,
    ImagePipeConfigError,
    ImagePipeDependencyError,
    ImagePipeError,
    ImagePipeInvalidEntryError,
    ImagePipeNotFoundError,
)
from core.image import Image
from pipeline.client import ImagePipeClient
from pipeline.engine import do
from pipeline.job import Job
from pipeline.parser import ChainParser, parse
from sources.base import Source
from sources.registry import (
    SourceRegistry,
    add_source,
    default_registry,
    get_source,
    range_sources,
    register_source,
)

__all__ = [
    "AbortNext",
    "ChainParser",
    "Image",
    "ImagePipeArgumentError",
    "ImagePipeBackendError",
    "ImagePipeCancelledError",
    "ImagePipeClient",
    "ImagePipeConfigError",
    "ImagePipeDependencyError",
    "ImagePipeError",
    "ImagePipeInvalidEntryError",
    "ImagePipeNotFoundError",
    "Job",
    "PipelineConfig",
    "RequestContext",
    "Source",
    "SourceRegistry",
    "add_source",
    "default_registry",
    "do",
    "get_source",
    "parse",
    "range_sources",
    "register_source",
]
