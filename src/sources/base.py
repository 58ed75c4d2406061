"""Source contract shared by every backend variant."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.context import RequestContext
from core.image import Image


@runtime_checkable
class Source(Protocol):
    """Backend that resolves lookup parameters to an image."""

    kind: str

    def find(self, ctx: RequestContext, *params: str) -> Image: ...

    def close(self, ctx: RequestContext) -> None: ...
