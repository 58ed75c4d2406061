"""Core constants used across imagepipe modules.

This module centralizes task names, image formats, and runtime defaults.
Keeping values here avoids magic literals in pipeline logic.
"""

from __future__ import annotations

TASK_SEPARATOR = "|"
ARGUMENT_SEPARATOR = "/"

TASK_PROXY = "proxy"
TASK_OPTIMIZE = "optimize"
TASK_AUTO_OPTIMIZE = "autoOptimize"
TASK_FIT_RESIZE = "fitResize"
TASK_FILL_RESIZE = "fillResize"
TASK_WATERMARK = "watermark"

POSITION_TOP_LEFT = "topLeft"
POSITION_TOP = "top"
POSITION_TOP_RIGHT = "topRight"
POSITION_LEFT = "left"
POSITION_CENTER = "center"
POSITION_RIGHT = "right"
POSITION_BOTTOM_LEFT = "bottomLeft"
POSITION_BOTTOM = "bottom"
POSITION_BOTTOM_RIGHT = "bottomRight"
SUPPORTED_POSITIONS = (
    POSITION_TOP_LEFT,
    POSITION_TOP,
    POSITION_TOP_RIGHT,
    POSITION_LEFT,
    POSITION_CENTER,
    POSITION_RIGHT,
    POSITION_BOTTOM_LEFT,
    POSITION_BOTTOM,
    POSITION_BOTTOM_RIGHT,
)

IMAGE_TYPE_PNG = "png"
IMAGE_TYPE_JPEG = "jpeg"
IMAGE_TYPE_WEBP = "webp"
IMAGE_TYPE_AVIF = "avif"

MEDIA_TYPE_AVIF = "image/avif"
MEDIA_TYPE_WEBP = "image/webp"

SCHEME_MINIO = "minio://"
SCHEME_MONGODB = "mongodb://"
SCHEME_ALIYUN = "aliyun://"
SCHEME_HTTP = "http://"
SCHEME_HTTPS = "https://"

SOURCE_KIND_FILE = "file"
SOURCE_KIND_HTTP = "http"
SOURCE_KIND_MINIO = "minio"
SOURCE_KIND_GRIDFS = "gridfs"
SOURCE_KIND_ALIYUN_OSS = "aliyun-oss"

DEFAULT_GRIDFS_BUCKET_NAME = "fs"
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_OPTIMIZE_TIMEOUT_SECONDS = 30.0
DEFAULT_DIAL_TIMEOUT_SECONDS = 5.0
DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS = 10.0
DEFAULT_MONGO_CONNECT_TIMEOUT_SECONDS = 10.0
SOURCES_FILE_VERSION = 1
SOURCES_ENV_SEPARATOR = ";"
