"""YAML source declaration loading.

This module parses a sources file into ordered ``(name, uri)`` pairs.
It keeps schema validation in one place for the CLI and SDK.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, cast

from core.constants import SOURCES_FILE_VERSION
from core.errors import ImagePipeConfigError, ImagePipeDependencyError


def load_sources_file(sources_path: str) -> tuple[tuple[str, str], ...]:
    """Load and validate a YAML sources file from disk.

    Args:
        sources_path: File path to the YAML document.

    Returns:
        Ordered source name and URI pairs.

    Raises:
        ImagePipeDependencyError: If PyYAML is unavailable.
        ImagePipeConfigError: If the file is missing or fails schema checks.
    """
    payload = _load_yaml_payload(sources_path)
    root_mapping = _expect_mapping(payload, "sources file root")
    _validate_version(root_mapping)
    sources_mapping = _expect_mapping(root_mapping.get("sources", {}), "sources")
    entries: list[tuple[str, str]] = []
    for name, uri in sources_mapping.items():
        if not isinstance(uri, str) or not uri.strip():
            raise ImagePipeConfigError(
                f"Invalid URI for source '{name}': expected a non-empty string."
            )
        entries.append((name, uri.strip()))
    return tuple(entries)


def _load_yaml_payload(sources_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise ImagePipeDependencyError(
            "YAML sources files require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    sources_file = Path(sources_path).expanduser().resolve()
    if not sources_file.exists():
        raise ImagePipeConfigError(
            f"Sources file does not exist at {sources_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(sources_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise ImagePipeConfigError(
            f"Failed to read sources file at {sources_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    except Exception as error:
        raise ImagePipeConfigError(
            f"Failed to parse YAML sources file at {sources_file}: {error}. "
            "Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise ImagePipeConfigError(
            f"Sources file at {sources_file} is empty. Define 'version' and 'sources'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise ImagePipeConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise ImagePipeConfigError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _validate_version(root_mapping: Mapping[str, object]) -> None:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int):
        raise ImagePipeConfigError(
            "Sources file field 'version' must be an integer. "
            f"Set version: {SOURCES_FILE_VERSION}."
        )
    if raw_version != SOURCES_FILE_VERSION:
        raise ImagePipeConfigError(
            f"Unsupported sources file version {raw_version}. "
            f"Use version: {SOURCES_FILE_VERSION}."
        )
