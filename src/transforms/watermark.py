"""Watermark compositing step."""

from __future__ import annotations

from typing import Callable

from PIL import Image as PILImage

from core.constants import (
    POSITION_BOTTOM,
    POSITION_BOTTOM_LEFT,
    POSITION_BOTTOM_RIGHT,
    POSITION_CENTER,
    POSITION_LEFT,
    POSITION_RIGHT,
    POSITION_TOP,
    POSITION_TOP_RIGHT,
    TASK_WATERMARK,
)
from core.context import RequestContext
from core.image import Image
from pipeline.job import Job
from transforms.inputs import require_image

WatermarkLoader = Callable[[RequestContext], PILImage.Image]


def get_watermark_position(
    position: str,
    width: int,
    height: int,
    watermark_width: int,
    watermark_height: int,
) -> tuple[int, int]:
    """Return the top-left paste point for ``position``; unknown names mean top-left."""
    # Truncate toward zero so oversized watermarks stay centered.
    center_x = int((width - watermark_width) / 2)
    center_y = int((height - watermark_height) / 2)
    right_x = width - watermark_width
    bottom_y = height - watermark_height
    anchors = {
        POSITION_TOP: (center_x, 0),
        POSITION_TOP_RIGHT: (right_x, 0),
        POSITION_LEFT: (0, center_y),
        POSITION_CENTER: (center_x, center_y),
        POSITION_RIGHT: (right_x, center_y),
        POSITION_BOTTOM_LEFT: (0, bottom_y),
        POSITION_BOTTOM: (center_x, bottom_y),
        POSITION_BOTTOM_RIGHT: (right_x, bottom_y),
    }
    return anchors.get(position, (0, 0))


def apply_watermark(
    image: Image, watermark: PILImage.Image, position: str, angle: float = 0.0
) -> Image:
    """Composite ``watermark`` onto ``image`` at the named anchor."""
    overlay = watermark.convert("RGBA")
    if angle != 0:
        overlay = overlay.rotate(angle, expand=True, fillcolor=(0, 0, 0, 0))
    x, y = get_watermark_position(
        position, image.width, image.height, overlay.width, overlay.height
    )
    base = image.grid.convert("RGBA")
    base.paste(overlay, (x, y), overlay)
    return image.with_grid(base)


def new_watermark(
    watermark: PILImage.Image | WatermarkLoader, position: str, angle: float = 0.0
) -> Job:
    """Build a watermark job from a grid or a loader resolved at execution time."""

    def handler(ctx: RequestContext, image: Image | None) -> Image:
        base = require_image(image, TASK_WATERMARK)
        overlay = watermark if isinstance(watermark, PILImage.Image) else watermark(ctx)
        return apply_watermark(base, overlay, position, angle)

    return Job(task=TASK_WATERMARK, args=(position, str(angle)), handler=handler)
