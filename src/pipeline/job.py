"""Executable pipeline step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from core.context import RequestContext
from core.image import Image

JobHandler = Callable[[RequestContext, Optional[Image]], Image]


@dataclass(frozen=True)
class Job:
    """One configured pipeline step.

    Attributes:
        task: Task kind the step was built for, used in logs and ``check`` output.
        args: Arguments captured at construction time.
        handler: Function mapping the incoming image to the outgoing one.
    """

    task: str
    args: tuple[str, ...]
    handler: JobHandler

    def __call__(self, ctx: RequestContext, image: Image | None) -> Image:
        return self.handler(ctx, image)

    def describe(self) -> str:
        return "\t".join((self.task, "/".join(self.args)))
