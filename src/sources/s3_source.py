"""S3-protocol object store sources.

This module encapsulates boto3 client creation for MinIO and Aliyun OSS
endpoints and reads ``<bucket>/<key>`` objects into images.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs, urlsplit

from core.constants import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    SOURCE_KIND_ALIYUN_OSS,
    SOURCE_KIND_MINIO,
)
from core.context import RequestContext
from core.errors import (
    ImagePipeArgumentError,
    ImagePipeBackendError,
    ImagePipeConfigError,
    ImagePipeDependencyError,
)
from core.image import Image


class S3ObjectSource:
    """Read objects through an S3-compatible boto3 client."""

    kind = "s3"

    def __init__(self, client: Any) -> None:
        self._client = client

    def find(self, ctx: RequestContext, *params: str) -> Image:
        """Fetch object ``params[1]`` from bucket ``params[0]``.

        Raises:
            ImagePipeArgumentError: If bucket or key is missing.
            ImagePipeBackendError: If the object cannot be downloaded.
        """
        if len(params) < 2:
            raise ImagePipeArgumentError(
                f"{self.kind} source requires two parameters: bucket and object key."
            )
        bucket, key = params[0], params[1]
        ctx.check()
        try:
            body = self._client.get_object(Bucket=bucket, Key=key)["Body"].read()
        except Exception as error:
            raise ImagePipeBackendError(
                f"Failed to download {bucket}/{key} from {self.kind}: {error}"
            ) from error
        return Image.from_bytes(body)

    def close(self, ctx: RequestContext) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()


class MinioSource(S3ObjectSource):
    """MinIO object store reached over plain HTTP with path-style buckets."""

    kind = SOURCE_KIND_MINIO


class AliyunOSSSource(S3ObjectSource):
    """Aliyun OSS reached through its S3-compatible HTTPS endpoint."""

    kind = SOURCE_KIND_ALIYUN_OSS


def build_minio_source(
    uri: str, timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
) -> MinioSource:
    """Build a MinIO source from ``minio://host:port/?accessKey=..&secretKey=..``."""
    host, access_key, secret_key = _parse_store_uri(uri)
    client = create_s3_client(
        endpoint_url=f"http://{host}",
        access_key=access_key,
        secret_key=secret_key,
        addressing_style="path",
        timeout_seconds=timeout_seconds,
    )
    return MinioSource(client)


def build_aliyun_oss_source(
    uri: str, timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
) -> AliyunOSSSource:
    """Build an OSS source from ``https://endpoint?accessKey=..&secretKey=..``.

    Raises:
        ImagePipeConfigError: If either credential is missing.
    """
    host, access_key, secret_key = _parse_store_uri(uri)
    if not access_key or not secret_key:
        raise ImagePipeConfigError(
            "Aliyun OSS source requires accessKey and secretKey query parameters. "
            "Add both to the source URI and retry."
        )
    client = create_s3_client(
        endpoint_url=f"https://{host}",
        access_key=access_key,
        secret_key=secret_key,
        addressing_style="virtual",
        timeout_seconds=timeout_seconds,
    )
    return AliyunOSSSource(client)


def create_s3_client(
    endpoint_url: str,
    access_key: str,
    secret_key: str,
    addressing_style: str,
    timeout_seconds: float,
) -> Any:
    """Create a boto3 S3 client for a custom endpoint.

    Raises:
        ImagePipeDependencyError: If boto3 is missing.
    """
    try:
        import boto3
        from botocore.config import Config
    except ImportError as error:
        raise ImagePipeDependencyError(
            "Object store sources require boto3, but it is not installed. "
            "Install boto3 to register minio:// or aliyun:// sources."
        ) from error
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key or None,
        aws_secret_access_key=secret_key or None,
        config=Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=timeout_seconds,
            read_timeout=timeout_seconds,
            retries={"max_attempts": 0},
        ),
    )


def _parse_store_uri(uri: str) -> tuple[str, str, str]:
    """Split an object store URI into host and credentials.

    Raises:
        ImagePipeConfigError: If the URI has no host.
    """
    parts = urlsplit(uri)
    if not parts.hostname:
        raise ImagePipeConfigError(
            f"Invalid object store URI '{uri}': expected scheme://host[:port]/?accessKey=..."
        )
    query = parse_qs(parts.query)
    access_key = query.get("accessKey", [""])[0]
    secret_key = query.get("secretKey", [""])[0]
    host = parts.hostname if parts.port is None else f"{parts.hostname}:{parts.port}"
    return host, access_key, secret_key
