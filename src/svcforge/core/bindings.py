"""Contextualization of ``google.api.http`` rules into ``HttpBinding`` records."""

from __future__ import annotations

import re

from google.api import annotations_pb2, http_pb2
from google.protobuf import descriptor_pb2

from svcforge.core.naming import english_number, safe_identifier, snake_case
from svcforge.core.urls import base_path
from svcforge.models import BindingField, FieldNode, HttpBinding, MessageNode, ParamLocation

_FIND_PARAMS = re.compile(r"{(.*?)}")

# Python type used to decode the string form of each scalar proto type.
PROTO_TO_PY_TYPES = {
    "double": "float",
    "float": "float",
    "int64": "int",
    "uint64": "int",
    "int32": "int",
    "uint32": "int",
    "fixed64": "int",
    "fixed32": "int",
    "sfixed32": "int",
    "sfixed64": "int",
    "sint32": "int",
    "sint64": "int",
    "bool": "bool",
    "string": "str",
    "bytes": "str",
}


def http_rules(method: descriptor_pb2.MethodDescriptorProto) -> list[http_pb2.HttpRule]:
    """Return the primary ``google.api.http`` rule of ``method`` followed by its additional bindings."""
    if not method.HasField("options"):
        return []
    options = method.options
    if not options.HasExtension(annotations_pb2.http):
        return []
    rule = options.Extensions[annotations_pb2.http]
    return [rule, *rule.additional_bindings]


def rule_verb(rule: http_pb2.HttpRule) -> tuple[str, str]:
    """Return the lower-cased verb and the path template of ``rule``; empty strings when unset."""
    pattern = rule.WhichOneof("pattern")
    if pattern is None:
        return "", ""
    if pattern == "custom":
        return rule.custom.kind.lower(), rule.custom.path
    return pattern, getattr(rule, pattern)


def path_param_names(path: str) -> list[str]:
    """Return the placeholder names of ``path``, without braces or ``=pattern`` suffixes."""
    return [match.split("=", 1)[0] for match in _FIND_PARAMS.findall(path)]


def param_location(field_name: str, path: str, body: str) -> ParamLocation:
    for param in path_param_names(path):
        if param.split(".")[0] == field_name:
            return "path"
    if body == "*" or body == field_name:
        return "body"
    return "query"


def new_binding_field(field: FieldNode, method_name: str, path: str, body: str) -> BindingField:
    py_type = PROTO_TO_PY_TYPES.get(field.type.name) if field.type.kind == "scalar" else None
    is_enum = field.type.kind == "enum"
    is_base_type = (py_type is not None or is_enum) and not field.repeated
    if is_enum:
        convert = "str"
    elif is_base_type and py_type is not None:
        convert = py_type
    else:
        convert = "json"
    return BindingField(
        name=field.name,
        local_name=safe_identifier(f"{field.name}_{snake_case(method_name)}"),
        location=param_location(field.name, path, body),
        scalar_type=field.type.name if field.type.kind == "scalar" else field.type.kind,
        repeated=field.repeated,
        convert_func=convert,
        is_base_type=is_base_type,
        is_enum=is_enum,
    )


def new_bindings(method_name: str, rules: list[http_pb2.HttpRule], request: MessageNode | None) -> list[HttpBinding]:
    """Build one ``HttpBinding`` per rule, deriving a ``BindingField`` for every request field."""
    bindings: list[HttpBinding] = []
    for idx, rule in enumerate(rules):
        verb, path = rule_verb(rule)
        if not verb:
            continue
        fields = [new_binding_field(f, method_name, path, rule.body) for f in request.fields] if request else []
        bindings.append(
            HttpBinding(
                verb=verb,
                path=path,
                body=rule.body,
                label=method_name + english_number(idx),
                base_path=base_path(path),
                fields=fields,
            )
        )
    return bindings
