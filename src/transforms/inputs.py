"""Input guards shared by image-consuming steps."""

from __future__ import annotations

from core.errors import ImagePipeArgumentError
from core.image import Image


def require_image(image: Image | None, task: str) -> Image:
    """Return ``image`` or fail when a step that transforms pixels has no input.

    Raises:
        ImagePipeArgumentError: If no earlier step produced an image.
    """
    if image is None:
        raise ImagePipeArgumentError(
            f"Task '{task}' needs an input image. Start the chain with a source or proxy task."
        )
    return image
