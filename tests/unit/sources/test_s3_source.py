"""Unit tests for S3-protocol object store sources."""

from __future__ import annotations

import io
from typing import Any

import pytest

import sources.s3_source as s3_module
from core.context import RequestContext
from core.errors import ImagePipeArgumentError, ImagePipeBackendError, ImagePipeConfigError
from sources.s3_source import (
    AliyunOSSSource,
    MinioSource,
    build_aliyun_oss_source,
    build_minio_source,
)


class _FakeS3Client:
    def __init__(self, objects: dict[tuple[str, str], bytes]) -> None:
        self._objects = objects
        self.closed = False

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if (Bucket, Key) not in self._objects:
            raise KeyError(f"NoSuchKey: {Bucket}/{Key}")
        return {"Body": io.BytesIO(self._objects[(Bucket, Key)])}

    def close(self) -> None:
        self.closed = True


def test_find_downloads_bucket_object(encoded_image) -> None:
    """Objects should be fetched by bucket and key."""
    client = _FakeS3Client({("photos", "a/b.png"): encoded_image(width=6, height=2)})

    image = MinioSource(client).find(RequestContext.background(), "photos", "a/b.png")

    assert (image.width, image.height) == (6, 2)


def test_find_requires_bucket_and_key() -> None:
    """A single parameter should be rejected."""
    with pytest.raises(ImagePipeArgumentError):
        MinioSource(_FakeS3Client({})).find(RequestContext.background(), "photos")


def test_find_wraps_client_errors() -> None:
    """Client failures should surface as backend errors."""
    with pytest.raises(ImagePipeBackendError):
        AliyunOSSSource(_FakeS3Client({})).find(RequestContext.background(), "b", "k")


def test_close_closes_client() -> None:
    """Closing the source should close the client."""
    client = _FakeS3Client({})

    MinioSource(client).close(RequestContext.background())

    assert client.closed


def test_build_minio_source_uses_path_style_http(monkeypatch: pytest.MonkeyPatch) -> None:
    """MinIO clients should target plain HTTP with path-style addressing."""
    captured: dict[str, Any] = {}

    def fake_create(**kwargs: Any) -> _FakeS3Client:
        captured.update(kwargs)
        return _FakeS3Client({})

    monkeypatch.setattr(s3_module, "create_s3_client", fake_create)

    source = build_minio_source("minio://store:9000/?accessKey=ak&secretKey=sk", 4.0)

    assert source.kind == "minio"
    assert captured == {
        "endpoint_url": "http://store:9000",
        "access_key": "ak",
        "secret_key": "sk",
        "addressing_style": "path",
        "timeout_seconds": 4.0,
    }


def test_build_aliyun_source_requires_credentials() -> None:
    """OSS sources without both keys should fail before dialing."""
    with pytest.raises(ImagePipeConfigError):
        build_aliyun_oss_source("https://oss.example.com?accessKey=ak")


def test_build_aliyun_source_uses_https_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    """OSS clients should target the HTTPS endpoint with virtual addressing."""
    captured: dict[str, Any] = {}

    def fake_create(**kwargs: Any) -> _FakeS3Client:
        captured.update(kwargs)
        return _FakeS3Client({})

    monkeypatch.setattr(s3_module, "create_s3_client", fake_create)

    source = build_aliyun_oss_source("https://oss.example.com?accessKey=ak&secretKey=sk")

    assert source.kind == "aliyun-oss"
    assert (captured["endpoint_url"], captured["addressing_style"]) == (
        "https://oss.example.com",
        "virtual",
    )
