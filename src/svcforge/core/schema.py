"""Decoding of compiled schemas and encoding of protoc plugin responses."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from svcforge.errors import SchemaLoadError
from svcforge.models import GeneratedFile

logger = logging.getLogger(__name__)

# Well-known and googleapis imports are resolved but never documented.
_SKIPPED_PREFIXES = ("google/",)


@dataclass
class SchemaRequest:
    proto_files: list[descriptor_pb2.FileDescriptorProto]
    files_to_generate: list[str]
    parameter: str = ""
    from_plugin: bool = False
    compiler_version: str = field(default="", compare=False)


def _declares_anything(proto: descriptor_pb2.FileDescriptorProto) -> bool:
    return bool(proto.message_type or proto.enum_type or proto.service)


def from_descriptor_set(descriptor_set: descriptor_pb2.FileDescriptorSet) -> SchemaRequest:
    files = list(descriptor_set.file)
    to_generate = [
        f.name for f in files if _declares_anything(f) and not f.name.startswith(_SKIPPED_PREFIXES)
    ]
    return SchemaRequest(proto_files=files, files_to_generate=to_generate)


def from_plugin_request(request: plugin_pb2.CodeGeneratorRequest) -> SchemaRequest:
    version = ""
    if request.HasField("compiler_version"):
        v = request.compiler_version
        version = f"{v.major}.{v.minor}.{v.patch}{v.suffix}"
    return SchemaRequest(
        proto_files=list(request.proto_file),
        files_to_generate=list(request.file_to_generate),
        parameter=request.parameter,
        from_plugin=True,
        compiler_version=version,
    )


def load_request(data: bytes) -> SchemaRequest:
    """Decode ``data`` as a ``CodeGeneratorRequest``, else as a ``FileDescriptorSet``.

    A descriptor set usually decodes as a request without ``proto_file``
    entries, so such a request falls through to the set.
    """
    if not data:
        raise SchemaLoadError("no schema data received")

    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(data)
    except DecodeError:
        logger.debug("Input is not a CodeGeneratorRequest, trying FileDescriptorSet")
    else:
        if request.file_to_generate and request.proto_file:
            logger.info("Loaded CodeGeneratorRequest with %d file(s)", len(request.proto_file))
            return from_plugin_request(request)

    descriptor_set = descriptor_pb2.FileDescriptorSet()
    try:
        descriptor_set.ParseFromString(data)
    except DecodeError as exc:
        raise SchemaLoadError(f"input is neither a CodeGeneratorRequest nor a FileDescriptorSet: {exc}") from exc
    if not descriptor_set.file:
        raise SchemaLoadError("schema contains no files")
    logger.info("Loaded FileDescriptorSet with %d file(s)", len(descriptor_set.file))
    return from_descriptor_set(descriptor_set)


def build_response(
    files: Iterable[GeneratedFile] = (), error: str | None = None
) -> plugin_pb2.CodeGeneratorResponse:
    """Build the response protoc expects from a plugin."""
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    if error is not None:
        response.error = error
        return response
    for generated in files:
        out = response.file.add()
        out.name = generated.path
        out.content = generated.content
    return response
