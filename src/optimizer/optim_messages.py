"""Protobuf messages for the optimizer's ``Optim`` gRPC service.

The service definition is small and fixed, so the message classes are built
from a descriptor at import time instead of shipping generated stubs.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from core.constants import IMAGE_TYPE_AVIF, IMAGE_TYPE_JPEG, IMAGE_TYPE_PNG, IMAGE_TYPE_WEBP

PROTO_PACKAGE = "optim"
DO_OPTIM_METHOD = f"/{PROTO_PACKAGE}.Optim/DoOptim"
MAX_QUALITY = 2**32 - 1

# Enum numbers follow the optimizer service's Type enum.
TYPE_NUMBERS = {
    IMAGE_TYPE_JPEG: 0,
    IMAGE_TYPE_PNG: 1,
    IMAGE_TYPE_WEBP: 2,
    IMAGE_TYPE_AVIF: 8,
}

_TYPE_ENUM_VALUES = (
    ("JPEG", 0),
    ("PNG", 1),
    ("WEBP", 2),
    ("GZIP", 3),
    ("BROTLI", 4),
    ("SNAPPY", 5),
    ("LZ4", 6),
    ("ZSTD", 7),
    ("AVIF", 8),
)

_FIELD = descriptor_pb2.FieldDescriptorProto


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="optim.proto", package=PROTO_PACKAGE, syntax="proto3"
    )
    type_enum = file_proto.enum_type.add(name="Type")
    for name, number in _TYPE_ENUM_VALUES:
        type_enum.value.add(name=name, number=number)

    request = file_proto.message_type.add(name="OptimRequest")
    enum_type_name = f".{PROTO_PACKAGE}.Type"
    _add_field(request, "source", 1, _FIELD.TYPE_ENUM, enum_type_name)
    _add_field(request, "output", 2, _FIELD.TYPE_ENUM, enum_type_name)
    _add_field(request, "data", 3, _FIELD.TYPE_BYTES)
    _add_field(request, "quality", 4, _FIELD.TYPE_UINT32)

    reply = file_proto.message_type.add(name="OptimReply")
    _add_field(reply, "data", 1, _FIELD.TYPE_BYTES)
    return file_proto


def _add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    field_type: int,
    type_name: str = "",
) -> None:
    field = message.field.add(name=name, number=number, type=field_type)
    field.label = _FIELD.LABEL_OPTIONAL
    if type_name:
        field.type_name = type_name


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file_descriptor().SerializeToString())

OptimRequest = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.OptimRequest")
)
OptimReply = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName(f"{PROTO_PACKAGE}.OptimReply")
)


def output_type_number(image_format: str) -> int:
    """Map an output format tag to the wire enum; unknown formats map to jpeg."""
    return TYPE_NUMBERS.get(image_format, TYPE_NUMBERS[IMAGE_TYPE_JPEG])
