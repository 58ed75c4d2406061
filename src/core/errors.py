"""imagepipe exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each collaborator boundary raises a specific error type for debuggability.
"""

from __future__ import annotations


class ImagePipeError(Exception):
    """Base exception for all imagepipe failures."""


class ImagePipeConfigError(ImagePipeError):
    """Raised for malformed source URIs, credentials, or runtime settings."""


class ImagePipeArgumentError(ImagePipeError):
    """Raised for task-chain parse failures and invalid lookup parameters."""


class ImagePipeNotFoundError(ImagePipeError):
    """Raised when a source name is not registered."""


class ImagePipeInvalidEntryError(ImagePipeError):
    """Raised when a registered value does not implement the source contract."""


class ImagePipeBackendError(ImagePipeError):
    """Raised for failures surfaced by sources, codecs, or the optimizer."""


class ImagePipeCancelledError(ImagePipeBackendError):
    """Raised when a request context is cancelled or past its deadline."""


class ImagePipeDependencyError(ImagePipeError):
    """Raised when an optional backend dependency is missing."""


class AbortNext(Exception):
    """Control signal: stop the pipeline and return the current image.

    Not an ``ImagePipeError``. The engine converts it into a successful
    result carrying the image produced by the last completed job.
    """
