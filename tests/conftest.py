"""Shared fixtures and helpers for tests."""

from collections.abc import Sequence
from pathlib import Path

import pytest
from google.api import annotations_pb2
from google.protobuf import descriptor_pb2

from svcforge.core.descriptors import WalkPolicy
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.doctree import new_service_definition
from svcforge.core.schema import SchemaRequest
from svcforge.models import ServiceDefinition

_REPO_ROOT = Path(__file__).parent.parent

_FDP = descriptor_pb2.FieldDescriptorProto


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Schema builders
# ---------------------------------------------------------------------------


def add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    type_: int = _FDP.TYPE_STRING,
    type_name: str = "",
    repeated: bool = False,
) -> descriptor_pb2.FieldDescriptorProto:
    field = message.field.add(name=name, number=number, type=type_)
    field.label = _FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL
    if type_name:
        field.type_name = type_name
    return field


def add_comment(
    proto: descriptor_pb2.FileDescriptorProto,
    path: Sequence[int],
    leading: str = "",
    detached: Sequence[str] = (),
) -> None:
    location = proto.source_code_info.location.add()
    location.path.extend(path)
    location.leading_comments = leading
    location.leading_detached_comments.extend(detached)


def build_add_file() -> descriptor_pb2.FileDescriptorProto:
    """Build ``add.proto``: an ``Add`` service with two HTTP-bound methods.

    Equivalent schema::

        syntax = "proto3";
        package add;

        // Add does arithmetic over HTTP.
        service Add {
          // Sum adds two numbers.
          rpc Sum(SumRequest) returns (SumReply) {
            option (google.api.http) = {
              get: "/v1/sum/{a}/{b}"
              additional_bindings { post: "/v1/sum" body: "*" }
            };
          }
          // Concat joins two strings.
          rpc Concat(ConcatRequest) returns (ConcatReply) {
            option (google.api.http) = { get: "/v1/concat/{a}" };
          }
        }

        // SumRequest carries the operands.
        message SumRequest {
          int64 a = 1;
          // b is the second operand.
          int64 b = 2;
        }
        message SumReply { int64 v = 1; }
        message ConcatRequest { string a = 1; repeated string b = 2; Mode mode = 3; }
        message ConcatReply { string v = 1; }

        // Mode selects the letter case.
        enum Mode {
          MODE_UNSPECIFIED = 0;
          // MODE_UPPER upper-cases the result.
          MODE_UPPER = 1;
        }
    """
    proto = descriptor_pb2.FileDescriptorProto(name="add.proto", package="add", syntax="proto3")
    proto.dependency.append("google/api/annotations.proto")

    sum_request = proto.message_type.add(name="SumRequest")
    add_field(sum_request, "a", 1, _FDP.TYPE_INT64)
    add_field(sum_request, "b", 2, _FDP.TYPE_INT64)
    sum_reply = proto.message_type.add(name="SumReply")
    add_field(sum_reply, "v", 1, _FDP.TYPE_INT64)
    concat_request = proto.message_type.add(name="ConcatRequest")
    add_field(concat_request, "a", 1)
    add_field(concat_request, "b", 2, repeated=True)
    add_field(concat_request, "mode", 3, _FDP.TYPE_ENUM, type_name=".add.Mode")
    concat_reply = proto.message_type.add(name="ConcatReply")
    add_field(concat_reply, "v", 1)

    mode = proto.enum_type.add(name="Mode")
    mode.value.add(name="MODE_UNSPECIFIED", number=0)
    mode.value.add(name="MODE_UPPER", number=1)

    service = proto.service.add(name="Add")
    sum_method = service.method.add(name="Sum", input_type=".add.SumRequest", output_type=".add.SumReply")
    sum_rule = sum_method.options.Extensions[annotations_pb2.http]
    sum_rule.get = "/v1/sum/{a}/{b}"
    sum_rule.additional_bindings.add(post="/v1/sum", body="*")
    concat_method = service.method.add(
        name="Concat", input_type=".add.ConcatRequest", output_type=".add.ConcatReply"
    )
    concat_method.options.Extensions[annotations_pb2.http].get = "/v1/concat/{a}"

    add_comment(proto, [6, 0], " Add does arithmetic over HTTP.\n")
    add_comment(proto, [6, 0, 2, 0], " Sum adds two numbers.\n")
    add_comment(proto, [6, 0, 2, 1], " Concat joins two strings.\n")
    add_comment(proto, [4, 0], " SumRequest carries the operands.\n")
    add_comment(proto, [4, 0, 2, 1], " b is the second operand.\n")
    add_comment(proto, [5, 0], " Mode selects the letter case.\n")
    add_comment(proto, [5, 0, 2, 1], " MODE_UPPER upper-cases the result.\n")
    # Uncommented locations are emitted by protoc too and must be ignored.
    add_comment(proto, [4, 1])
    add_comment(proto, [4, 1, 2, 0])
    return proto


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def add_file() -> descriptor_pb2.FileDescriptorProto:
    """Return the descriptor of ``add.proto``."""
    return build_add_file()


@pytest.fixture
def add_request(add_file: descriptor_pb2.FileDescriptorProto) -> SchemaRequest:
    """Return a schema request generating ``add.proto``."""
    return SchemaRequest(proto_files=[add_file], files_to_generate=[add_file.name])


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def add_definition(add_file: descriptor_pb2.FileDescriptorProto, diagnostics: Diagnostics) -> ServiceDefinition:
    """Return the correlated documentation tree of ``add.proto``."""
    return new_service_definition([add_file], [add_file.name], WalkPolicy.BEST_EFFORT, diagnostics)


@pytest.fixture
def add_descriptor_set(add_file: descriptor_pb2.FileDescriptorProto, tmp_path: Path) -> Path:
    """Write ``add.proto`` as a serialized FileDescriptorSet and return its path."""
    descriptor_set = descriptor_pb2.FileDescriptorSet()
    descriptor_set.file.append(add_file)
    path = tmp_path / "add.pb"
    path.write_bytes(descriptor_set.SerializeToString())
    return path
