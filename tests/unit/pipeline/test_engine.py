"""Unit tests for the sequential job executor."""

from __future__ import annotations

import pytest
from PIL import Image as PILImage

from core.context import RequestContext
from core.errors import AbortNext, ImagePipeBackendError
from core.image import Image
from pipeline.engine import do
from pipeline.job import Job


def _image(width: int) -> Image:
    return Image(grid=PILImage.new("RGB", (width, 1)), image_format="png")


def _producing(width: int, calls: list[int]) -> Job:
    def handler(ctx: RequestContext, image: Image | None) -> Image:
        calls.append(width)
        return _image(width)

    return Job(task=f"make{width}", args=(), handler=handler)


def test_do_threads_images_through_jobs() -> None:
    """Each job should receive the previous job's output."""
    received: list[int | None] = []

    def record(ctx: RequestContext, image: Image | None) -> Image:
        received.append(image.width if image else None)
        return _image((image.width if image else 0) + 1)

    jobs = [Job(task="step", args=(), handler=record) for _ in range(3)]

    result = do(RequestContext.background(), None, jobs)

    assert received == [None, 1, 2] and result is not None and result.width == 3


def test_do_with_no_jobs_returns_initial_image() -> None:
    """An empty chain should return its input."""
    initial = _image(5)

    assert do(RequestContext.background(), initial, []) is initial


def test_abort_next_returns_previous_image_and_skips_rest() -> None:
    """AbortNext should end the chain successfully with the last image."""
    calls: list[int] = []

    def abort(ctx: RequestContext, image: Image | None) -> Image:
        raise AbortNext()

    jobs = [_producing(1, calls), Job(task="abort", args=(), handler=abort), _producing(2, calls)]

    result = do(RequestContext.background(), None, jobs)

    assert calls == [1] and result is not None and result.width == 1


def test_job_failure_propagates_without_partial_result() -> None:
    """Errors other than AbortNext should propagate unchanged."""
    calls: list[int] = []

    def fail(ctx: RequestContext, image: Image | None) -> Image:
        raise ImagePipeBackendError("boom")

    jobs = [_producing(1, calls), Job(task="fail", args=(), handler=fail), _producing(2, calls)]

    with pytest.raises(ImagePipeBackendError, match="boom"):
        do(RequestContext.background(), None, jobs)

    assert calls == [1]


def test_do_accepts_plain_callables() -> None:
    """Bare handler functions should run like jobs."""

    def handler(ctx: RequestContext, image: Image | None) -> Image:
        return _image(4)

    result = do(RequestContext.background(), None, [handler])

    assert result is not None and result.width == 4
