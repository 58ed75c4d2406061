"""Unit tests for the named source registry."""

from __future__ import annotations

import threading

import pytest

import sources.registry as registry_module
from core.context import RequestContext
from core.errors import ImagePipeInvalidEntryError, ImagePipeNotFoundError
from core.image import Image
from sources.file_source import FileSource
from sources.registry import SourceRegistry


class _RecordingSource:
    kind = "recording"

    def __init__(self) -> None:
        self.closed = False

    def find(self, ctx: RequestContext, *params: str) -> Image:
        raise AssertionError("find should not be called")

    def close(self, ctx: RequestContext) -> None:
        self.closed = True


def test_get_returns_registered_source() -> None:
    """Lookups should return the exact registered object."""
    registry = SourceRegistry()
    source = _RecordingSource()

    registry.register("a", source)

    assert registry.get("a") is source


def test_get_raises_for_unknown_name() -> None:
    """Unregistered names should raise not-found."""
    with pytest.raises(ImagePipeNotFoundError):
        SourceRegistry().get("missing")


def test_get_raises_for_non_source_entry() -> None:
    """Values without the source contract should raise invalid-entry."""
    registry = SourceRegistry()
    registry.register("broken", object())

    with pytest.raises(ImagePipeInvalidEntryError):
        registry.get("broken")


def test_register_replaces_existing_entry() -> None:
    """The last registration for a name should win."""
    registry = SourceRegistry()
    second = _RecordingSource()
    registry.register("a", _RecordingSource())

    registry.register("a", second)

    assert registry.get("a") is second


def test_range_visits_snapshot_while_registering() -> None:
    """Visitors may register new sources without deadlocking."""
    registry = SourceRegistry()
    registry.register("a", _RecordingSource())
    visited: list[str] = []

    def visit(name: str, _source: object) -> None:
        visited.append(name)
        registry.register(f"{name}-copy", _RecordingSource())

    registry.range(visit)

    assert visited == ["a"] and registry.names() == ["a", "a-copy"]


def test_concurrent_register_and_get_are_consistent() -> None:
    """Concurrent writers and readers should never observe a torn registry."""
    registry = SourceRegistry()
    errors: list[BaseException] = []

    def writer(index: int) -> None:
        for round_index in range(50):
            registry.register(f"s{index}-{round_index}", _RecordingSource())

    def reader() -> None:
        for _ in range(200):
            for name in registry.names():
                try:
                    registry.get(name)
                except BaseException as error:  # pragma: no cover - failure path
                    errors.append(error)

    threads = [threading.Thread(target=writer, args=(index,)) for index in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors and len(registry.names()) == 200


def test_close_all_closes_and_clears_sources() -> None:
    """Closing the registry should close every source."""
    registry = SourceRegistry()
    source = _RecordingSource()
    registry.register("a", source)

    registry.close_all(RequestContext.background())

    assert source.closed and registry.names() == []


def test_add_source_without_scheme_registers_file_source(tmp_path) -> None:
    """Plain paths should select the filesystem variant."""
    registry = SourceRegistry()

    source = registry.add_source("local", str(tmp_path))

    assert isinstance(source, FileSource) and registry.get("local") is source


def test_add_source_dispatches_minio_scheme(monkeypatch: pytest.MonkeyPatch) -> None:
    """minio:// URIs should build an object store source."""
    built: list[str] = []
    fake = _RecordingSource()

    def fake_build(uri: str, timeout_seconds: float) -> _RecordingSource:
        built.append(uri)
        return fake

    monkeypatch.setattr(registry_module, "build_minio_source", fake_build)

    source = SourceRegistry().add_source("store", "minio://host:9000/?accessKey=a")

    assert source is fake and built == ["minio://host:9000/?accessKey=a"]


def test_add_source_rewrites_aliyun_scheme(monkeypatch: pytest.MonkeyPatch) -> None:
    """aliyun:// URIs should be rebuilt as https endpoints."""
    built: list[str] = []

    def fake_build(uri: str, timeout_seconds: float) -> _RecordingSource:
        built.append(uri)
        return _RecordingSource()

    monkeypatch.setattr(registry_module, "build_aliyun_oss_source", fake_build)

    SourceRegistry().add_source("oss", "aliyun://oss.example.com?accessKey=a&secretKey=b")

    assert built == ["https://oss.example.com?accessKey=a&secretKey=b"]


def test_add_source_dispatches_mongodb_scheme(monkeypatch: pytest.MonkeyPatch) -> None:
    """mongodb:// URIs should build a GridFS source."""
    built: list[str] = []

    def fake_build(uri: str, timeout_seconds: float) -> _RecordingSource:
        built.append(uri)
        return _RecordingSource()

    monkeypatch.setattr(registry_module, "build_gridfs_source", fake_build)

    SourceRegistry().add_source("grid", "mongodb://db:27017/images")

    assert built == ["mongodb://db:27017/images"]
