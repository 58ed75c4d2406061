"""Remote recompression steps.

The current grid is sent to the optimizer as lossless png and the reply
replaces the image's encoded bytes. The pixel grid is kept, so width and
height still describe the pre-optimize pixels.
"""

from __future__ import annotations

from typing import Callable

from core.constants import (
    DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    IMAGE_TYPE_AVIF,
    IMAGE_TYPE_PNG,
    IMAGE_TYPE_WEBP,
    MEDIA_TYPE_AVIF,
    MEDIA_TYPE_WEBP,
    TASK_AUTO_OPTIMIZE,
    TASK_OPTIMIZE,
)
from core.context import RequestContext
from core.image import Image
from core.logging_config import get_logger
from optimizer.optimizer_client import do_optim
from pipeline.job import Job
from transforms.inputs import require_image

_LOGGER = get_logger(__name__)

OptimizeCall = Callable[[RequestContext, str, bytes, int, str, float], bytes]


def optimize(
    ctx: RequestContext,
    address: str,
    image: Image,
    quality: int,
    output_format: str,
    timeout_seconds: float = DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    call: OptimizeCall = do_optim,
) -> Image:
    """Recompress ``image`` through the optimizer at ``address``."""
    data = call(ctx, address, image.png(), quality, output_format, timeout_seconds)
    _LOGGER.debug(
        "image_optimized",
        address=address,
        format=output_format,
        quality=quality,
        size=len(data),
    )
    return image.with_optimized(data, output_format)


def select_auto_format(accept: str, image_format: str, quality: int) -> tuple[str, int]:
    """Pick the output format and quality from an Accept-like hint.

    avif wins over webp; otherwise the image keeps its format. A png
    recompressed to webp uses the optimizer's default quality.
    """
    if MEDIA_TYPE_AVIF in accept:
        return IMAGE_TYPE_AVIF, quality
    if MEDIA_TYPE_WEBP in accept:
        if image_format == IMAGE_TYPE_PNG:
            return IMAGE_TYPE_WEBP, 0
        return IMAGE_TYPE_WEBP, quality
    return image_format, quality


def new_auto_optimize_image(
    address: str,
    quality: int,
    accept: str,
    timeout_seconds: float = DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    call: OptimizeCall = do_optim,
) -> Job:
    def handler(ctx: RequestContext, image: Image | None) -> Image:
        source = require_image(image, TASK_AUTO_OPTIMIZE)
        output_format, output_quality = select_auto_format(accept, source.format, quality)
        return optimize(
            ctx, address, source, output_quality, output_format, timeout_seconds, call
        )

    return Job(task=TASK_AUTO_OPTIMIZE, args=(address, str(quality)), handler=handler)


def new_optimize_image(
    address: str,
    quality: int,
    output_format: str | None = None,
    timeout_seconds: float = DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    call: OptimizeCall = do_optim,
) -> Job:
    """Build an optimize job; without ``output_format`` the image keeps its format."""

    def handler(ctx: RequestContext, image: Image | None) -> Image:
        source = require_image(image, TASK_OPTIMIZE)
        return optimize(
            ctx, address, source, quality, output_format or source.format, timeout_seconds, call
        )

    args = (address, str(quality)) + ((output_format,) if output_format else ())
    return Job(task=TASK_OPTIMIZE, args=args, handler=handler)
