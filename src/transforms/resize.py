"""Fit and fill resize steps.

Fit scales the image down to fit inside the target box, keeping aspect
ratio. Fill scales and center-crops to cover the target box exactly. Both
leave images already within the box untouched.
"""

from __future__ import annotations

from typing import Callable

from PIL import Image as PILImage
from PIL import ImageOps

from core.constants import TASK_FILL_RESIZE, TASK_FIT_RESIZE
from core.context import RequestContext
from core.image import Image
from pipeline.job import Job
from transforms.inputs import require_image

ResizeHandler = Callable[[PILImage.Image, int, int], PILImage.Image]


def fit_grid(grid: PILImage.Image, width: int, height: int) -> PILImage.Image:
    """Scale ``grid`` to fit inside ``width`` x ``height`` with Lanczos resampling."""
    if width <= 0 or height <= 0:
        return PILImage.new(grid.mode, (0, 0))
    source_ratio = grid.width / grid.height
    if source_ratio > width / height:
        new_width, new_height = width, int(width / source_ratio)
    else:
        new_width, new_height = int(height * source_ratio), height
    return grid.resize((max(new_width, 1), max(new_height, 1)), PILImage.Resampling.LANCZOS)


def fill_grid(grid: PILImage.Image, width: int, height: int) -> PILImage.Image:
    """Scale and center-crop ``grid`` to exactly ``width`` x ``height``."""
    if width <= 0 or height <= 0:
        return PILImage.new(grid.mode, (0, 0))
    return ImageOps.fit(
        grid, (width, height), method=PILImage.Resampling.LANCZOS, centering=(0.5, 0.5)
    )


def resize_image(handler: ResizeHandler, image: Image, width: int, height: int) -> Image:
    """Apply ``handler`` unless the image already fits within the target box."""
    if image.width <= width and image.height <= height:
        return image
    return image.with_grid(handler(image.grid, width, height))


def new_fit_resize_image(width: int, height: int) -> Job:
    def handler(_: RequestContext, image: Image | None) -> Image:
        return resize_image(fit_grid, require_image(image, TASK_FIT_RESIZE), width, height)

    return Job(task=TASK_FIT_RESIZE, args=(str(width), str(height)), handler=handler)


def new_fill_resize_image(width: int, height: int) -> Job:
    def handler(_: RequestContext, image: Image | None) -> Image:
        return resize_image(fill_grid, require_image(image, TASK_FILL_RESIZE), width, height)

    return Job(task=TASK_FILL_RESIZE, args=(str(width), str(height)), handler=handler)
