"""Unit tests for the GridFS source."""

from __future__ import annotations

import io
from typing import Any

import pytest

import sources.gridfs_source as gridfs_module
from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError, ImagePipeConfigError
from sources.gridfs_source import GridFSSource, build_gridfs_source

_FILE_ID = "65a1b2c3d4e5f60718293a4b"


class _FakeClient:
    def __init__(self) -> None:
        self.closed = False

    def __getitem__(self, name: str) -> str:
        return f"db:{name}"

    def close(self) -> None:
        self.closed = True


class _FakeBucket:
    def __init__(self, files: dict[str, bytes]) -> None:
        self._files = files

    def open_download_stream(self, file_id: Any) -> io.BytesIO:
        if str(file_id) not in self._files:
            raise FileNotFoundError(f"no file {file_id}")
        return io.BytesIO(self._files[str(file_id)])


def test_find_reads_file_from_default_bucket(
    monkeypatch: pytest.MonkeyPatch, encoded_image
) -> None:
    """Lookups without a bucket name should use the fs bucket."""
    opened: list[tuple[str, str]] = []

    def fake_open(database: str, bucket_name: str) -> _FakeBucket:
        opened.append((database, bucket_name))
        return _FakeBucket({_FILE_ID: encoded_image(width=2, height=2)})

    monkeypatch.setattr(gridfs_module, "_open_bucket", fake_open)

    image = GridFSSource(_FakeClient(), "images").find(RequestContext.background(), _FILE_ID)

    assert image.width == 2 and opened == [("db:images", "fs")]


def test_find_uses_named_bucket(monkeypatch: pytest.MonkeyPatch, encoded_image) -> None:
    """A second parameter should select the bucket."""
    opened: list[str] = []

    def fake_open(database: str, bucket_name: str) -> _FakeBucket:
        opened.append(bucket_name)
        return _FakeBucket({_FILE_ID: encoded_image()})

    monkeypatch.setattr(gridfs_module, "_open_bucket", fake_open)

    GridFSSource(_FakeClient(), "images").find(RequestContext.background(), _FILE_ID, "thumbs")

    assert opened == ["thumbs"]


def test_find_rejects_invalid_object_id() -> None:
    """Malformed ids should be argument errors."""
    with pytest.raises(ImagePipeArgumentError):
        GridFSSource(_FakeClient(), "images").find(RequestContext.background(), "not-an-id")


def test_find_wraps_download_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    """Missing files should surface as backend errors."""
    monkeypatch.setattr(gridfs_module, "_open_bucket", lambda database, name: _FakeBucket({}))

    with pytest.raises(ImagePipeBackendError):
        GridFSSource(_FakeClient(), "images").find(RequestContext.background(), _FILE_ID)


def test_close_closes_client() -> None:
    """Closing the source should close the Mongo client."""
    client = _FakeClient()

    GridFSSource(client, "images").close(RequestContext.background())

    assert client.closed


def test_build_gridfs_source_requires_database() -> None:
    """URIs without a database should be config errors."""
    with pytest.raises(ImagePipeConfigError):
        build_gridfs_source("mongodb://localhost:27017")
