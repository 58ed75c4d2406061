"""Pytest configuration for repository test runs."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Callable

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def encoded_image() -> Callable[..., bytes]:
    """Return a factory producing encoded solid-color images in memory."""
    from PIL import Image as PILImage

    def build(
        width: int = 8,
        height: int = 6,
        image_format: str = "PNG",
        color: tuple[int, ...] = (200, 40, 40),
    ) -> bytes:
        mode = "RGBA" if len(color) == 4 else "RGB"
        buffer = io.BytesIO()
        PILImage.new(mode, (width, height), color).save(buffer, format=image_format)
        return buffer.getvalue()

    return build
