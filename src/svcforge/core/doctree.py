"""Construction of the documentation tree from a descriptor forest.

The tree is built in three passes. The first creates a named node for every
declaration of every file and indexes messages and enums by fully qualified
name. The second resolves enum references and HTTP bindings, which may point
into other files. The third walks the source locations of the files being
generated and copies each comment onto the node its path designates.
"""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Sequence

from google.protobuf import descriptor_pb2

from svcforge.core.bindings import http_rules, new_bindings
from svcforge.core.descriptors import WalkPolicy, WalkResult, walk_location
from svcforge.core.diagnostics import Diagnostics
from svcforge.errors import SvcforgeError
from svcforge.models import (
    Describable,
    EnumNode,
    EnumValueNode,
    FieldNode,
    FieldType,
    FileNode,
    MessageNode,
    MethodNode,
    ServiceDefinition,
    ServiceNode,
    SourceLocation,
)

logger = logging.getLogger(__name__)

_FDP = descriptor_pb2.FieldDescriptorProto

_LABELS = {
    _FDP.LABEL_OPTIONAL: "optional",
    _FDP.LABEL_REQUIRED: "required",
    _FDP.LABEL_REPEATED: "repeated",
}

_SCALAR_TYPES = {
    _FDP.TYPE_DOUBLE: "double",
    _FDP.TYPE_FLOAT: "float",
    _FDP.TYPE_INT64: "int64",
    _FDP.TYPE_UINT64: "uint64",
    _FDP.TYPE_INT32: "int32",
    _FDP.TYPE_FIXED64: "fixed64",
    _FDP.TYPE_FIXED32: "fixed32",
    _FDP.TYPE_BOOL: "bool",
    _FDP.TYPE_STRING: "string",
    _FDP.TYPE_BYTES: "bytes",
    _FDP.TYPE_UINT32: "uint32",
    _FDP.TYPE_SFIXED32: "sfixed32",
    _FDP.TYPE_SFIXED64: "sfixed64",
    _FDP.TYPE_SINT32: "sint32",
    _FDP.TYPE_SINT64: "sint64",
}


def scrub_comments(comment: str) -> str:
    """Strip the common indentation and surrounding blank lines protoc leaves on comments."""
    lines = [line.rstrip() for line in comment.splitlines()]
    return textwrap.dedent("\n".join(lines)).strip()


def _simple_name(type_name: str) -> str:
    return type_name.rsplit(".", 1)[-1]


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else f".{name}"


class _Builder:
    def __init__(self, diagnostics: Diagnostics) -> None:
        self.diagnostics = diagnostics
        self.messages: dict[str, MessageNode] = {}
        self.enums: dict[str, EnumNode] = {}
        self._enum_refs: list[tuple[FieldType, str]] = []
        self._methods: list[tuple[MethodNode, descriptor_pb2.MethodDescriptorProto]] = []

    def new_file(self, proto: descriptor_pb2.FileDescriptorProto) -> FileNode:
        scope = f".{proto.package}" if proto.package else ""
        return FileNode(
            name=proto.name,
            package=proto.package,
            messages=[self.new_message(m, scope) for m in proto.message_type],
            enums=[self.new_enum(e, scope) for e in proto.enum_type],
            services=[self.new_service(s) for s in proto.service],
        )

    def new_message(self, proto: descriptor_pb2.DescriptorProto, scope: str) -> MessageNode:
        full_name = _qualify(scope, proto.name)
        node = MessageNode(
            name=proto.name,
            full_name=full_name,
            fields=[self.new_field(f) for f in proto.field],
            messages=[self.new_message(m, full_name) for m in proto.nested_type],
            enums=[self.new_enum(e, full_name) for e in proto.enum_type],
        )
        self.messages[full_name] = node
        return node

    def new_field(self, proto: descriptor_pb2.FieldDescriptorProto) -> FieldNode:
        if proto.type in _SCALAR_TYPES:
            field_type = FieldType(name=_SCALAR_TYPES[proto.type])
        elif proto.type == _FDP.TYPE_ENUM:
            field_type = FieldType(name=_simple_name(proto.type_name), kind="enum")
            self._enum_refs.append((field_type, proto.type_name))
        else:
            field_type = FieldType(name=_simple_name(proto.type_name), kind="message")
        return FieldNode(
            name=proto.name,
            number=proto.number,
            label=_LABELS.get(proto.label, "optional"),  # type: ignore[arg-type]
            type=field_type,
        )

    def new_enum(self, proto: descriptor_pb2.EnumDescriptorProto, scope: str) -> EnumNode:
        node = EnumNode(
            name=proto.name,
            values=[EnumValueNode(name=v.name, number=v.number) for v in proto.value],
        )
        self.enums[_qualify(scope, proto.name)] = node
        return node

    def new_service(self, proto: descriptor_pb2.ServiceDescriptorProto) -> ServiceNode:
        methods = []
        for meth in proto.method:
            node = MethodNode(
                name=meth.name,
                request_type=_simple_name(meth.input_type),
                response_type=_simple_name(meth.output_type),
                client_streaming=meth.client_streaming,
                server_streaming=meth.server_streaming,
            )
            self._methods.append((node, meth))
            methods.append(node)
        return ServiceNode(name=proto.name, methods=methods)

    def resolve(self) -> None:
        for field_type, type_name in self._enum_refs:
            field_type.enum = self.enums.get(type_name)
            if field_type.enum is None:
                self.diagnostics.warning("BrokenReference", f"enum {type_name} is not part of the schema")

        for node, proto in self._methods:
            rules = http_rules(proto)
            if not rules:
                continue
            request = self.messages.get(proto.input_type)
            if request is None:
                self.diagnostics.warning(
                    "BrokenReference",
                    f"request type {proto.input_type} of {node.name} is not part of the schema",
                )
            node.bindings = new_bindings(node.name, rules, request)


def resolve_node(root: ServiceDefinition, result: WalkResult) -> Describable | None:
    """Return the tree node matching the declaration chain of a walk."""
    node: Describable | None = root
    for step in result.steps:
        if node is None:
            return None
        node = node.child(step.kind, step.name)
    return node


def associate_comments(
    root: ServiceDefinition,
    proto: descriptor_pb2.FileDescriptorProto,
    policy: WalkPolicy,
    diagnostics: Diagnostics,
) -> int:
    """Copy the comments of ``proto`` onto the nodes of ``root``; return how many were attached."""
    attached = 0
    for loc in proto.source_code_info.location:
        location = SourceLocation(
            path=list(loc.path),
            leading_comments=loc.leading_comments,
            trailing_comments=loc.trailing_comments,
            leading_detached_comments=list(loc.leading_detached_comments),
        )
        # Only commented locations reliably point at concrete declarations.
        if not location.has_comments():
            continue

        try:
            result = walk_location(location.path, proto, policy, diagnostics)
        except SvcforgeError as exc:
            if policy is WalkPolicy.STRICT:
                raise
            diagnostics.warning(
                type(exc).__name__.removesuffix("Error"), str(exc), file=proto.name, path=location.path
            )
            continue
        if result is None:
            continue

        node = resolve_node(root, result)
        if node is None:
            diagnostics.debug(
                "Unmapped",
                f"{result.target.kind} {result.name!r} has no documentation node",
                file=proto.name,
                path=location.path,
            )
            continue

        if location.leading_comments.strip():
            node.description = scrub_comments(location.leading_comments)
        else:
            node.description = "\n\n".join(
                scrub_comments(c) for c in location.leading_detached_comments if c.strip()
            )
        attached += 1
    return attached


def new_service_definition(
    proto_files: Sequence[descriptor_pb2.FileDescriptorProto],
    files_to_generate: Sequence[str],
    policy: WalkPolicy = WalkPolicy.BEST_EFFORT,
    diagnostics: Diagnostics | None = None,
) -> ServiceDefinition:
    """Build the correlated documentation tree for ``files_to_generate``.

    Every file of ``proto_files`` takes part in type resolution, but only the
    files to generate appear in the tree and have their comments correlated,
    in the order they were requested.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    by_name = {f.name: f for f in proto_files}
    missing = [name for name in files_to_generate if name not in by_name]
    if missing:
        raise SvcforgeError(f"files to generate are not part of the schema: {', '.join(missing)}")

    builder = _Builder(diagnostics)
    nodes = {f.name: builder.new_file(f) for f in proto_files}
    builder.resolve()

    package = by_name[files_to_generate[0]].package if files_to_generate else ""
    root = ServiceDefinition(name=package, files=[nodes[name] for name in files_to_generate])

    for name in files_to_generate:
        attached = associate_comments(root, by_name[name], policy, diagnostics)
        logger.info("Attached %d comment(s) from %s", attached, name)
    return root
