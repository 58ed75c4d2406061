"""Runtime configuration model for imagepipe.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS,
    DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    SOURCES_ENV_SEPARATOR,
)
from core.errors import ImagePipeConfigError


@dataclass(frozen=True)
class PipelineConfig:
    """Validated runtime configuration.

    Attributes:
        fetch_timeout_seconds: Upper bound for one source or URL fetch.
        optimize_timeout_seconds: Upper bound for one optimizer RPC.
        health_check_interval_seconds: Poll interval for HTTP upstream hosts.
        sources: Ordered ``(name, uri)`` pairs to register at startup.
    """

    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    optimize_timeout_seconds: float = DEFAULT_OPTIMIZE_TIMEOUT_SECONDS
    health_check_interval_seconds: float = DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS
    sources: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ImagePipeConfigError: If environment values are invalid.
        """
        return cls(
            fetch_timeout_seconds=_read_seconds(
                "IMAGEPIPE_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT_SECONDS
            ),
            optimize_timeout_seconds=_read_seconds(
                "IMAGEPIPE_OPTIMIZE_TIMEOUT", DEFAULT_OPTIMIZE_TIMEOUT_SECONDS
            ),
            health_check_interval_seconds=_read_seconds(
                "IMAGEPIPE_HEALTH_CHECK_INTERVAL", DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS
            ),
            sources=parse_source_entries(os.getenv("IMAGEPIPE_SOURCES", "")),
        )


def parse_source_entries(raw_value: str) -> tuple[tuple[str, str], ...]:
    """Parse ``name=uri;name=uri`` source declarations.

    Args:
        raw_value: Raw declaration string, possibly empty.

    Returns:
        Ordered name and URI pairs.

    Raises:
        ImagePipeConfigError: If an entry has no name or no URI.
    """
    entries: list[tuple[str, str]] = []
    for chunk in raw_value.split(SOURCES_ENV_SEPARATOR):
        entry = chunk.strip()
        if not entry:
            continue
        entries.append(parse_source_entry(entry))
    return tuple(entries)


def parse_source_entry(entry: str) -> tuple[str, str]:
    """Parse a single ``name=uri`` declaration.

    Raises:
        ImagePipeConfigError: If the entry is malformed.
    """
    name, separator, uri = entry.partition("=")
    name = name.strip()
    uri = uri.strip()
    if not separator or not name or not uri:
        raise ImagePipeConfigError(
            f"Invalid source declaration '{entry}': expected name=uri. "
            "Declare sources as name=uri, separated by ';'."
        )
    return name, uri


def _read_seconds(env_name: str, default_value: float) -> float:
    """Parse a positive duration in seconds from the environment.

    Args:
        env_name: Environment variable name.
        default_value: Value used when the variable is unset.

    Returns:
        Parsed duration.

    Raises:
        ImagePipeConfigError: If value is not a positive number.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default_value
    try:
        seconds = float(raw_value)
    except ValueError as error:
        raise ImagePipeConfigError(
            f"Invalid {env_name} value: expected number of seconds, got '{raw_value}'. "
            f"Set {env_name} to a positive numeric value."
        ) from error
    if seconds <= 0:
        raise ImagePipeConfigError(
            f"Invalid {env_name} value: expected a positive duration, got '{raw_value}'."
        )
    return seconds
