"""Navigation of descriptor messages by source location path.

A ``SourceCodeInfo.Location.path`` alternates field numbers and collection
indexes: ``[6, 0, 2, 1]`` reads "field 6 (``service``) of the file, item 0,
field 2 (``method``) of that service, item 1". Field numbers are resolved
through the static ``FIELD_TABLES`` below rather than through descriptor
reflection, so a walk never depends on what the protobuf runtime exposes.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from google.protobuf.message import Message

from svcforge.core.diagnostics import Diagnostics
from svcforge.errors import BrokenReferenceError, IndexOutOfRangeError, MalformedPathError

logger = logging.getLogger(__name__)

_FILE = "google.protobuf.FileDescriptorProto"
_MESSAGE = "google.protobuf.DescriptorProto"
_FIELD = "google.protobuf.FieldDescriptorProto"
_ONEOF = "google.protobuf.OneofDescriptorProto"
_ENUM = "google.protobuf.EnumDescriptorProto"
_ENUM_VALUE = "google.protobuf.EnumValueDescriptorProto"
_SERVICE = "google.protobuf.ServiceDescriptorProto"
_METHOD = "google.protobuf.MethodDescriptorProto"


@dataclass(frozen=True)
class Slot:
    attr: str
    repeated: bool = False
    # Full name of the message type held by the slot; None for scalars.
    message: str | None = None


FIELD_TABLES: dict[str, dict[int, Slot]] = {
    _FILE: {
        1: Slot("name"),
        2: Slot("package"),
        3: Slot("dependency", repeated=True),
        4: Slot("message_type", repeated=True, message=_MESSAGE),
        5: Slot("enum_type", repeated=True, message=_ENUM),
        6: Slot("service", repeated=True, message=_SERVICE),
        7: Slot("extension", repeated=True, message=_FIELD),
        8: Slot("options", message="google.protobuf.FileOptions"),
        9: Slot("source_code_info", message="google.protobuf.SourceCodeInfo"),
        10: Slot("public_dependency", repeated=True),
        11: Slot("weak_dependency", repeated=True),
        12: Slot("syntax"),
    },
    _MESSAGE: {
        1: Slot("name"),
        2: Slot("field", repeated=True, message=_FIELD),
        3: Slot("nested_type", repeated=True, message=_MESSAGE),
        4: Slot("enum_type", repeated=True, message=_ENUM),
        5: Slot("extension_range", repeated=True, message="google.protobuf.DescriptorProto.ExtensionRange"),
        6: Slot("extension", repeated=True, message=_FIELD),
        7: Slot("options", message="google.protobuf.MessageOptions"),
        8: Slot("oneof_decl", repeated=True, message=_ONEOF),
        9: Slot("reserved_range", repeated=True, message="google.protobuf.DescriptorProto.ReservedRange"),
        10: Slot("reserved_name", repeated=True),
    },
    _FIELD: {
        1: Slot("name"),
        2: Slot("extendee"),
        3: Slot("number"),
        4: Slot("label"),
        5: Slot("type"),
        6: Slot("type_name"),
        7: Slot("default_value"),
        8: Slot("options", message="google.protobuf.FieldOptions"),
        9: Slot("oneof_index"),
        10: Slot("json_name"),
        17: Slot("proto3_optional"),
    },
    _ONEOF: {
        1: Slot("name"),
        2: Slot("options", message="google.protobuf.OneofOptions"),
    },
    _ENUM: {
        1: Slot("name"),
        2: Slot("value", repeated=True, message=_ENUM_VALUE),
        3: Slot("options", message="google.protobuf.EnumOptions"),
        4: Slot("reserved_range", repeated=True, message="google.protobuf.EnumDescriptorProto.EnumReservedRange"),
        5: Slot("reserved_name", repeated=True),
    },
    _ENUM_VALUE: {
        1: Slot("name"),
        2: Slot("number"),
        3: Slot("options", message="google.protobuf.EnumValueOptions"),
    },
    _SERVICE: {
        1: Slot("name"),
        2: Slot("method", repeated=True, message=_METHOD),
        3: Slot("options", message="google.protobuf.ServiceOptions"),
    },
    _METHOD: {
        1: Slot("name"),
        2: Slot("input_type"),
        3: Slot("output_type"),
        4: Slot("options", message="google.protobuf.MethodOptions"),
        5: Slot("client_streaming"),
        6: Slot("server_streaming"),
    },
}

# Declaration kinds of the descriptor types that name a node of the doc tree.
NODE_KINDS: dict[str, str] = {
    _FILE: "file",
    _MESSAGE: "message",
    _FIELD: "field",
    _ONEOF: "oneof",
    _ENUM: "enum",
    _ENUM_VALUE: "enum_value",
    _SERVICE: "service",
    _METHOD: "method",
}


class WalkPolicy(enum.Enum):
    STRICT = "strict"
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class PathStep:
    kind: str
    name: str


@dataclass(frozen=True)
class WalkResult:
    """Chain of declarations visited by a walk, root first.

    ``label`` is set when the path ended on a field selector of the last node,
    e.g. ``[4, 0, 1]`` (the ``name`` of message 0).
    """

    steps: tuple[PathStep, ...]
    label: str | None = None

    @property
    def target(self) -> PathStep:
        return self.steps[-1]

    @property
    def name(self) -> str:
        return self.steps[-1].name


def _step_for(value: Any, slot: Slot | None = None) -> PathStep:
    if isinstance(value, Message):
        full_name = value.DESCRIPTOR.full_name
        kind = NODE_KINDS.get(full_name)
        if kind is not None:
            return PathStep(kind=kind, name=value.name)  # type: ignore[attr-defined]
        return PathStep(kind=slot.attr if slot else full_name, name="")
    return PathStep(kind="scalar", name=str(value))


def walk_location(
    path: Sequence[int],
    root: Message,
    policy: WalkPolicy = WalkPolicy.STRICT,
    diagnostics: Diagnostics | None = None,
) -> WalkResult | None:
    """Follow ``path`` from ``root`` to the declaration it designates.

    Raises ``MalformedPathError`` for a field number the current node does not
    declare, ``BrokenReferenceError`` for an unset singular message, and
    ``IndexOutOfRangeError`` for a collection index beyond its length. Under
    ``WalkPolicy.BEST_EFFORT`` an out-of-range index is recorded in
    ``diagnostics`` and the walk returns ``None`` instead. A walk entering a
    message without a field table, such as ``FileOptions``, stops there.
    """
    remaining = tuple(path)
    node: Any = root
    steps = [_step_for(root)]

    while remaining:
        if not isinstance(node, Message):
            raise MalformedPathError(f"cannot select field {remaining[0]} of scalar value {node!r} (path {list(path)})")
        full_name = node.DESCRIPTOR.full_name
        table = FIELD_TABLES.get(full_name)
        if table is None:
            # Options and other non-declaration messages end the walk at their owner slot.
            logger.debug("Stopping at %s, path %s is not followed further", full_name, list(path))
            return WalkResult(steps=tuple(steps))
        slot = table.get(remaining[0])
        if slot is None:
            raise MalformedPathError(f"{full_name} declares no field number {remaining[0]} (path {list(path)})")
        logger.debug("Selected field %d (%s) of %s %r", remaining[0], slot.attr, full_name, steps[-1].name)

        if len(remaining) == 1:
            return WalkResult(steps=tuple(steps), label=slot.attr)

        value = getattr(node, slot.attr)
        if not slot.repeated:
            if slot.message is not None and not node.HasField(slot.attr):
                raise BrokenReferenceError(f"{full_name}.{slot.attr} is not set (path {list(path)})")
            node = value
            steps.append(_step_for(node, slot))
            remaining = remaining[1:]
            continue

        index = remaining[1]
        if not 0 <= index < len(value):
            message = f"{full_name}.{slot.attr} has {len(value)} items, cannot access index {index} (path {list(path)})"
            if policy is WalkPolicy.BEST_EFFORT:
                if diagnostics is not None:
                    diagnostics.warning("IndexOutOfRange", message, path=list(path))
                else:
                    logger.warning("IndexOutOfRange: %s", message)
                return None
            raise IndexOutOfRangeError(message)
        node = value[index]
        steps.append(_step_for(node, slot))
        remaining = remaining[2:]

    return WalkResult(steps=tuple(steps))
