"""Text and Markdown views of a correlated documentation tree."""

from __future__ import annotations

from functools import singledispatch

from svcforge.models import (
    Describable,
    EnumNode,
    EnumValueNode,
    FieldNode,
    FileNode,
    HttpBinding,
    MessageNode,
    MethodNode,
    ServiceDefinition,
    ServiceNode,
)

INDENT = "    "


def _line(depth: int, text: str) -> str:
    return f"{INDENT * depth}{text}\n"


def _heading(depth: int, text: str) -> str:
    return f"{'#' * depth} {text}\n\n"


def _children(depth: int, label: str, nodes: list) -> str:
    rv = ""
    for idx, node in enumerate(nodes):
        rv += _line(depth, f"{label} {idx}:")
        rv += describe(node, depth + 1)
    return rv


@singledispatch
def describe(node: Describable, depth: int = 0) -> str:
    """Return an indented, line-per-attribute view of ``node`` and its children."""
    return _line(depth, f"Name: {node.name}") + _line(depth, f"Desc: {node.description}")


@describe.register
def _(node: ServiceDefinition, depth: int = 0) -> str:
    return describe.dispatch(Describable)(node, depth) + _children(depth, "File", node.files)


@describe.register
def _(node: FileNode, depth: int = 0) -> str:
    rv = describe.dispatch(Describable)(node, depth)
    rv += _line(depth, f"Package: {node.package}")
    rv += _children(depth, "Message", node.messages)
    rv += _children(depth, "Enum", node.enums)
    rv += _children(depth, "Service", node.services)
    return rv


@describe.register
def _(node: MessageNode, depth: int = 0) -> str:
    rv = describe.dispatch(Describable)(node, depth)
    rv += _children(depth, "Field", node.fields)
    rv += _children(depth, "Message", node.messages)
    rv += _children(depth, "Enum", node.enums)
    return rv


@describe.register
def _(node: FieldNode, depth: int = 0) -> str:
    rv = describe.dispatch(Describable)(node, depth)
    rv += _line(depth, f"Number: {node.number}")
    rv += _line(depth, f"Label: {node.label}")
    rv += _line(depth, "Type:")
    rv += _line(depth + 1, f"Name: {node.type.name}")
    rv += _line(depth + 1, f"Kind: {node.type.kind}")
    return rv


@describe.register
def _(node: EnumNode, depth: int = 0) -> str:
    return describe.dispatch(Describable)(node, depth) + _children(depth, "Value", node.values)


@describe.register
def _(node: EnumValueNode, depth: int = 0) -> str:
    return describe.dispatch(Describable)(node, depth) + _line(depth, f"Number: {node.number}")


@describe.register
def _(node: ServiceNode, depth: int = 0) -> str:
    return describe.dispatch(Describable)(node, depth) + _children(depth, "Method", node.methods)


@describe.register
def _(node: MethodNode, depth: int = 0) -> str:
    rv = describe.dispatch(Describable)(node, depth)
    rv += _line(depth, f"RequestType: {node.request_type}")
    rv += _line(depth, f"ResponseType: {node.response_type}")
    for idx, binding in enumerate(node.bindings):
        rv += _line(depth, f"HttpBinding {idx}:")
        rv += _describe_binding(binding, depth + 1)
    return rv


def _describe_binding(binding: HttpBinding, depth: int) -> str:
    rv = _line(depth, f"Verb: {binding.verb}")
    rv += _line(depth, f"Path: {binding.path}")
    rv += _line(depth, f"BasePath: {binding.base_path}")
    if binding.body:
        rv += _line(depth, f"Body: {binding.body}")
    for field in binding.fields:
        rv += _line(depth, f"Field {field.name}: {field.location} {field.scalar_type} {field.cardinality}")
    return rv


def _md_described(node: Describable, depth: int) -> str:
    rv = _heading(depth, node.name)
    if node.description:
        rv += f"{node.description}\n\n"
    return rv


def _md_section(depth: int, title: str, body: str) -> str:
    if not body:
        return ""
    return _heading(depth, title) + body


def _md_message(node: MessageNode, depth: int) -> str:
    rv = _md_described(node, depth)
    for field in node.fields:
        rv += _md_described(field, depth + 1)
        rv += f"*Protobuf Field Number:*  {field.number}\n\n"
        type_name = f"repeated {field.type.name}" if field.repeated else field.type.name
        rv += f"*Type:*  {type_name}\n\n"
    for nested in node.messages:
        rv += _md_message(nested, depth + 1)
    for enum in node.enums:
        rv += _md_enum(enum, depth + 1)
    return rv


def _md_enum(node: EnumNode, depth: int) -> str:
    rv = _md_described(node, depth)
    for value in node.values:
        rv += f"{value.number}. {value.name}\n\n"
    return rv


def _md_method(node: MethodNode, depth: int) -> str:
    rv = _md_described(node, depth)
    rv += f"RequestType: {node.request_type}\n\n"
    rv += f"ResponseType: {node.response_type}\n\n"
    if node.bindings:
        rv += _heading(depth + 1, "HTTP Bindings")
        for binding in node.bindings:
            rv += f"- `{binding.verb.upper()} {binding.path}`"
            if binding.body:
                rv += f" (body: `{binding.body}`)"
            rv += "\n"
            for field in binding.fields:
                rv += f"    - `{field.name}` in {field.location} ({field.scalar_type}, {field.cardinality})\n"
        rv += "\n"
    return rv


def _md_file(node: FileNode, depth: int) -> str:
    rv = _md_described(node, depth)
    rv += _md_section(depth + 1, "Messages", "".join(_md_message(m, depth + 2) for m in node.messages))
    rv += _md_section(depth + 1, "Enums", "".join(_md_enum(e, depth + 2) for e in node.enums))
    services = ""
    for svc in node.services:
        services += _md_described(svc, depth + 2)
        services += _md_section(depth + 3, "Methods", "".join(_md_method(m, depth + 4) for m in svc.methods))
    rv += _md_section(depth + 1, "Services", services)
    return rv


def markdown(root: ServiceDefinition) -> str:
    """Render ``root`` as a Markdown document, one heading level per tree level."""
    rv = _md_described(root, 1)
    for file in root.files:
        rv += _md_file(file, 2)
    return rv
