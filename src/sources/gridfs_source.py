"""MongoDB GridFS source.

Lookup parameters are a hex object id and an optional bucket name.
"""

from __future__ import annotations

from typing import Any

from core.constants import (
    DEFAULT_GRIDFS_BUCKET_NAME,
    DEFAULT_MONGO_CONNECT_TIMEOUT_SECONDS,
    SOURCE_KIND_GRIDFS,
)
from core.context import RequestContext
from core.errors import (
    ImagePipeArgumentError,
    ImagePipeBackendError,
    ImagePipeConfigError,
    ImagePipeDependencyError,
)
from core.image import Image


class GridFSSource:
    """Download GridFS files from one database."""

    kind = SOURCE_KIND_GRIDFS

    def __init__(self, client: Any, database: str) -> None:
        self._client = client
        self._database = database

    @property
    def database(self) -> str:
        return self._database

    def find(self, ctx: RequestContext, *params: str) -> Image:
        """Download file ``params[0]`` from bucket ``params[1]`` (default ``fs``).

        Raises:
            ImagePipeArgumentError: If the id is missing or not a valid object id.
            ImagePipeBackendError: If the download fails.
        """
        if len(params) < 1:
            raise ImagePipeArgumentError("GridFS source requires one parameter: the file id.")
        bucket_name = params[1] if len(params) > 1 else DEFAULT_GRIDFS_BUCKET_NAME
        file_id = _parse_object_id(params[0])
        ctx.check()
        bucket = _open_bucket(self._client[self._database], bucket_name)
        try:
            data = bucket.open_download_stream(file_id).read()
        except Exception as error:
            raise ImagePipeBackendError(
                f"Failed to download GridFS file {params[0]} from {self._database}.{bucket_name}: "
                f"{error}"
            ) from error
        return Image.from_bytes(data)

    def close(self, ctx: RequestContext) -> None:
        self._client.close()


def build_gridfs_source(
    uri: str, timeout_seconds: float = DEFAULT_MONGO_CONNECT_TIMEOUT_SECONDS
) -> GridFSSource:
    """Connect to MongoDB and build a source for the URI's database.

    Raises:
        ImagePipeConfigError: If the URI is invalid or names no database.
        ImagePipeDependencyError: If pymongo is missing.
    """
    pymongo = _import_pymongo()
    try:
        parsed = pymongo.uri_parser.parse_uri(uri)
    except Exception as error:
        raise ImagePipeConfigError(f"Invalid MongoDB URI: {error}") from error
    database = parsed.get("database")
    if not database:
        raise ImagePipeConfigError(
            "MongoDB source URI must name a database, e.g. mongodb://host:27017/images."
        )
    timeout_ms = int(timeout_seconds * 1000)
    client = pymongo.MongoClient(
        uri, connectTimeoutMS=timeout_ms, serverSelectionTimeoutMS=timeout_ms
    )
    return GridFSSource(client, database)


def _parse_object_id(raw_id: str) -> Any:
    from bson import ObjectId
    from bson.errors import InvalidId

    try:
        return ObjectId(raw_id)
    except (InvalidId, TypeError) as error:
        raise ImagePipeArgumentError(f"Invalid GridFS file id '{raw_id}': {error}") from error


def _open_bucket(database: Any, bucket_name: str) -> Any:
    import gridfs

    return gridfs.GridFSBucket(database, bucket_name=bucket_name)


def _import_pymongo() -> Any:
    try:
        import pymongo
        import pymongo.uri_parser
    except ImportError as error:
        raise ImagePipeDependencyError(
            "GridFS sources require pymongo, but it is not installed. "
            "Install pymongo to register mongodb:// sources."
        ) from error
    return pymongo
