"""Sequential job executor."""

from __future__ import annotations

import time
from typing import Iterable

from core.context import RequestContext
from core.errors import AbortNext
from core.image import Image
from core.logging_config import get_logger
from pipeline.job import JobHandler

_LOGGER = get_logger(__name__)


def do(ctx: RequestContext, image: Image | None, jobs: Iterable[JobHandler]) -> Image | None:
    """Run ``jobs`` in order, threading each result into the next job.

    Args:
        ctx: Request context shared by every job.
        image: Initial image, or None when the first job produces one.
        jobs: Ordered jobs.

    Returns:
        The last image produced. When a job raises ``AbortNext`` the image
        produced by the previous job is returned and later jobs never run.

    Raises:
        Exception: Any other job failure, unchanged; no partial image is returned.
    """
    started_at = time.monotonic()
    for index, job in enumerate(jobs):
        task = getattr(job, "task", getattr(job, "__name__", "job"))
        _LOGGER.debug("job_started", index=index, task=task)
        try:
            image = job(ctx, image)
        except AbortNext:
            _LOGGER.info("pipeline_aborted", index=index, task=task)
            return image
    _LOGGER.debug("pipeline_completed", elapsed_seconds=round(time.monotonic() - started_at, 6))
    return image
