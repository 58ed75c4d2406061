"""Filesystem source sandboxed to a base directory."""

from __future__ import annotations

from pathlib import Path

from core.constants import SOURCE_KIND_FILE
from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError
from core.image import Image


class FileSource:
    """Read images from files below ``base_path``."""

    kind = SOURCE_KIND_FILE

    def __init__(self, base_path: str | Path) -> None:
        self._base_path = Path(base_path).expanduser().resolve()

    @property
    def base_path(self) -> Path:
        return self._base_path

    def find(self, ctx: RequestContext, *params: str) -> Image:
        """Load the image at ``params[0]`` relative to the base directory.

        Raises:
            ImagePipeArgumentError: If no path is given or it escapes the base directory.
            ImagePipeBackendError: If the file cannot be read or decoded.
        """
        if len(params) < 1:
            raise ImagePipeArgumentError("File source requires one parameter: the file path.")
        ctx.check()
        file_path = self.resolve(params[0])
        try:
            data = file_path.read_bytes()
        except OSError as error:
            raise ImagePipeBackendError(f"Failed to read image file {file_path}: {error}") from error
        return Image.from_bytes(data)

    def resolve(self, relative_path: str) -> Path:
        """Join ``relative_path`` onto the base directory, failing closed on traversal."""
        if "\x00" in relative_path:
            raise ImagePipeArgumentError(
                f"Invalid file name {relative_path!r}: embedded null byte."
            )
        try:
            candidate = (self._base_path / relative_path.lstrip("/")).resolve()
        except ValueError as error:
            raise ImagePipeArgumentError(
                f"Invalid file name {relative_path!r}: {error}."
            ) from error
        if not candidate.is_relative_to(self._base_path):
            raise ImagePipeArgumentError(
                f"Invalid file name '{relative_path}': path escapes {self._base_path}."
            )
        return candidate

    def close(self, ctx: RequestContext) -> None:
        return None
