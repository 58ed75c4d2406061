"""Immutable image value threaded through pipeline jobs.

An ``Image`` wraps a decoded Pillow grid, the most recently produced encoded
bytes with their format tag, and a link to the image it was derived from.
Jobs never mutate an image; they return a new one.
"""

from __future__ import annotations

import io

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from core.constants import IMAGE_TYPE_JPEG, IMAGE_TYPE_PNG, IMAGE_TYPE_WEBP
from core.errors import ImagePipeBackendError

_PILLOW_FORMATS = {
    IMAGE_TYPE_PNG: "PNG",
    IMAGE_TYPE_JPEG: "JPEG",
    IMAGE_TYPE_WEBP: "WEBP",
}


class Image:
    """Decoded pixel grid plus cached encoded representation."""

    __slots__ = ("_grid", "_data", "_format", "_previous", "_original_size")

    def __init__(
        self,
        grid: PILImage.Image,
        image_format: str,
        data: bytes | None = None,
        previous: "Image | None" = None,
        original_size: int = 0,
    ) -> None:
        self._grid = grid
        self._format = image_format
        self._data = data
        self._previous = previous
        self._original_size = original_size

    @classmethod
    def from_bytes(cls, data: bytes) -> "Image":
        """Decode raw bytes into an image.

        Args:
            data: Encoded image payload.

        Returns:
            Image holding the decoded grid and the original bytes.

        Raises:
            ImagePipeBackendError: If the payload is not a decodable image.
        """
        try:
            grid = PILImage.open(io.BytesIO(data))
            grid.load()
        except (
            UnidentifiedImageError,
            PILImage.DecompressionBombError,
            OSError,
            ValueError,
        ) as error:
            raise ImagePipeBackendError(f"Failed to decode image data: {error}") from error
        image_format = (grid.format or IMAGE_TYPE_PNG).lower()
        return cls(grid=grid, image_format=image_format, data=data, original_size=len(data))

    @property
    def grid(self) -> PILImage.Image:
        return self._grid

    @property
    def format(self) -> str:
        return self._format

    @property
    def previous(self) -> "Image | None":
        """Image this one was derived from by a grid change."""
        return self._previous

    @property
    def original_size(self) -> int:
        return self._original_size

    @property
    def width(self) -> int:
        return self._grid.width

    @property
    def height(self) -> int:
        return self._grid.height

    def with_grid(self, grid: PILImage.Image) -> "Image":
        """Return a new image holding ``grid`` with this image as predecessor.

        The encoded cache is dropped; it is re-encoded lazily on next read.
        """
        return Image(
            grid=grid,
            image_format=self._format,
            data=None,
            previous=self,
            original_size=self._original_size,
        )

    def with_optimized(self, data: bytes, image_format: str) -> "Image":
        """Return a new image carrying optimizer output for the same grid."""
        return Image(
            grid=self._grid,
            image_format=image_format,
            data=data,
            previous=self._previous,
            original_size=self._original_size,
        )

    def encode(self, image_format: str) -> bytes:
        """Encode the grid as ``image_format``; unknown formats encode as jpeg.

        Raises:
            ImagePipeBackendError: If Pillow cannot encode the grid.
        """
        pillow_format = _PILLOW_FORMATS.get(image_format, "JPEG")
        grid = self._grid
        if pillow_format == "JPEG" and grid.mode not in ("RGB", "L", "CMYK"):
            grid = grid.convert("RGB")
        buffer = io.BytesIO()
        try:
            grid.save(buffer, format=pillow_format)
        except (OSError, ValueError, SystemError) as error:
            raise ImagePipeBackendError(
                f"Failed to encode {self.width}x{self.height} image as {image_format}: {error}"
            ) from error
        return buffer.getvalue()

    def png(self) -> bytes:
        """Return png bytes, reusing the cached payload when it is already png."""
        if self._format == IMAGE_TYPE_PNG and self._data:
            return self._data
        return self.encode(IMAGE_TYPE_PNG)

    def jpeg(self) -> bytes:
        """Return jpeg bytes, reusing the cached payload when it is already jpeg."""
        if self._format == IMAGE_TYPE_JPEG and self._data:
            return self._data
        return self.encode(IMAGE_TYPE_JPEG)

    def bytes(self) -> tuple[bytes, str]:
        """Return the encoded payload and its format tag.

        After a grid change the payload is re-encoded in the current format,
        or as jpeg when that format has no local encoder.
        """
        if self._data:
            return self._data, self._format
        image_format = self._format if self._format in _PILLOW_FORMATS else IMAGE_TYPE_JPEG
        return self.encode(image_format), image_format
