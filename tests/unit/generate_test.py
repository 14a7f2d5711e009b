"""Tests for rendering template assets."""

from unittest.mock import patch

import pytest

from svcforge.config import GeneratorConfig
from svcforge.core.generate import GenerationContext, generate, new_context, pb_module
from svcforge.errors import FormatError, ServiceNotFoundError, TemplateExecutionError
from svcforge.models import ServiceDefinition, TemplateAsset


def _asset(stored_path: str, text: str) -> TemplateAsset:
    return TemplateAsset(stored_path=stored_path, raw_bytes=text.encode())


@pytest.fixture
def context(add_definition: ServiceDefinition) -> GenerationContext:
    return new_context(add_definition)


class TestNewContext:
    def test_defaults(self, context: GenerationContext) -> None:
        assert context.package_name == "add"
        assert context.handler_import == "add"
        assert context.generated_import == "add.generated"
        assert context.pb_import == "add_pb2"
        assert context.proto_package == "add"
        assert context.service.name == "Add"
        assert "def path_params(" in context.http_helpers_source

    def test_overrides(self, add_definition: ServiceDefinition) -> None:
        config = GeneratorConfig(package_name="adder", handler_import="svc.adder", generated_import="svc.gen")
        context = new_context(add_definition, config)
        assert (context.package_name, context.handler_import, context.generated_import) == (
            "adder",
            "svc.adder",
            "svc.gen",
        )

    def test_select_service_by_name(self, add_definition: ServiceDefinition) -> None:
        assert new_context(add_definition, GeneratorConfig(service="Add")).service.name == "Add"

    def test_unknown_service(self, add_definition: ServiceDefinition) -> None:
        with pytest.raises(ServiceNotFoundError, match="'Missing'"):
            new_context(add_definition, GeneratorConfig(service="Missing"))

    def test_no_service(self) -> None:
        with pytest.raises(ServiceNotFoundError):
            new_context(ServiceDefinition(name="empty"))

    def test_context_is_immutable(self, context: GenerationContext) -> None:
        with pytest.raises(ValueError):
            context.package_name = "other"  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("proto", "module"),
        [("add.proto", "add_pb2"), ("acme/v1/add.proto", "acme.v1.add_pb2"), ("my-api.proto", "my_api_pb2")],
    )
    def test_pb_module(self, proto: str, module: str) -> None:
        assert pb_module(proto) == module


class TestGenerate:
    def test_renders_and_maps_paths(self, context: GenerationContext) -> None:
        assets = [
            _asset("v1/NAME-service/NOTES.mdtemplate", "# {{ service.name }}\n"),
            _asset("v1/NAME/methods.txttemplate", "{% for m in service.methods %}{{ m.name | lower }}\n{% endfor %}"),
        ]
        result = generate(assets, context)
        assert [(f.path, f.content, f.asset_path) for f in result.files] == [
            ("NOTES.md", "# Add\n", "v1/NAME-service/NOTES.mdtemplate"),
            ("add/methods.txt", "sum\nconcat\n", "v1/NAME/methods.txttemplate"),
        ]
        assert len(result.diagnostics) == 0

    def test_filters(self, context: GenerationContext) -> None:
        text = "{{ 'sum_request' | camel }} {{ 'SumRequest' | snake }} {{ 'package_name' | low_camel }} {{ 'x' | upper }}"
        [generated] = generate([_asset("v1/f.txt", text)], context).files
        assert generated.content == "SumRequest sum_request packageName X"

    def test_bindings_are_exposed(self, context: GenerationContext) -> None:
        text = (
            "{% for m in service.methods %}{% for b in m.bindings %}"
            "{{ b.verb }} {{ b.base_path }} {{ b.fields_in('path') | join(',') }}\n"
            "{% endfor %}{% endfor %}"
        )
        [generated] = generate([_asset("v1/routes.txt", text)], context).files
        assert generated.content.splitlines()[0].startswith("get /v1/sum ")

    def test_undeclared_variable_names_asset(self, context: GenerationContext) -> None:
        assets = [_asset("v1/ok.txt", "fine"), _asset("v1/NAME/broken.pytemplate", "{{ undeclared_thing }}")]
        with pytest.raises(TemplateExecutionError) as exc_info:
            generate(assets, context)
        assert exc_info.value.asset_name == "v1/NAME/broken.pytemplate"
        assert "undeclared_thing" in str(exc_info.value)

    def test_missing_attribute_is_an_error(self, context: GenerationContext) -> None:
        with pytest.raises(TemplateExecutionError):
            generate([_asset("v1/x.txt", "{{ service.nickname }}")], context)

    def test_syntax_error_names_asset(self, context: GenerationContext) -> None:
        with pytest.raises(TemplateExecutionError, match="v1/bad.txt"):
            generate([_asset("v1/bad.txt", "{% for %}")], context)

    @pytest.mark.parametrize(
        "text",
        ["{{ 5 | camel }}", "{{ service.methods | join(1) }}", "{{ 1 // 0 }}"],
        ids=["filter-operand", "join-separator", "division"],
    )
    def test_evaluation_errors_name_asset(self, context: GenerationContext, text: str) -> None:
        with pytest.raises(TemplateExecutionError) as exc_info:
            generate([_asset("v1/NAME/x.txttemplate", text)], context)
        assert exc_info.value.asset_name == "v1/NAME/x.txttemplate"
        assert exc_info.value.__cause__ is not None

    def test_no_general_globals(self, context: GenerationContext) -> None:
        with pytest.raises(TemplateExecutionError):
            generate([_asset("v1/x.txt", "{{ range(3) }}")], context)

    def test_python_output_is_formatted(self, context: GenerationContext) -> None:
        [generated] = generate([_asset("v1/NAME/x.pytemplate", "VALUE=( 1,2 )\n")], context).files
        assert generated.content == "VALUE = (1, 2)\n"
        assert generated.formatted is True

    def test_format_failure_keeps_unformatted_text(self, context: GenerationContext) -> None:
        result = generate([_asset("v1/NAME/x.pytemplate", "def broken(:\n")], context)
        [generated] = result.files
        assert generated.content == "def broken(:\n"
        assert generated.formatted is False
        [record] = result.diagnostics.by_code("FormatError")
        assert record.context["path"] == "add/x.py"

    def test_formatter_is_chosen_by_output_path(self, context: GenerationContext) -> None:
        with patch("svcforge.formatters.black_adapter.black.format_str", side_effect=ValueError("boom")) as fmt:
            result = generate(
                [_asset("v1/NAME/a.pytemplate", "a = 1\n"), _asset("v1/README.mdtemplate", "# x\n")], context
            )
        assert fmt.call_count == 1
        assert [f.formatted for f in result.files] == [False, True]

    def test_formatter_error_type(self, context: GenerationContext) -> None:
        with patch("svcforge.core.generate.formatter_for") as formatter_for:
            formatter_for.return_value.format.side_effect = FormatError("nope")
            [generated] = generate([_asset("v1/a.txt", "text")], context).files
        assert generated.content == "text"
        assert not generated.formatted

    def test_parallel_rendering_keeps_asset_order(self, context: GenerationContext) -> None:
        assets = [_asset(f"v1/f{i:02d}.txt", f"{i}") for i in range(20)]
        result = generate(assets, context, workers=4)
        assert [f.content for f in result.files] == [str(i) for i in range(20)]

    def test_duplicate_output_path_last_wins(self, context: GenerationContext) -> None:
        assets = [_asset("v1/NAME-service/x.txt", "first"), _asset("v1/x.txttemplate", "second")]
        result = generate(assets, context)
        [generated] = result.files
        assert generated.content == "second"
        assert result.diagnostics.by_code("DuplicateOutput")


class TestExistingHandlers:
    HANDLERS = "v1/NAME/handlers.pytemplate"

    def test_existing_handlers_are_updated(self, context: GenerationContext) -> None:
        existing = "import add_pb2 as pb\n\n\nclass AddHandlers:\n    def sum(self, request):\n        return 42\n"
        [generated] = generate(
            [_asset(self.HANDLERS, "unused")], context, previous={"add/handlers.py": existing}.get
        ).files
        assert generated.merged is True
        assert "return 42" in generated.content
        assert "def concat(self, request: pb.ConcatRequest) -> pb.ConcatReply:" in generated.content

    def test_missing_file_is_rendered(self, context: GenerationContext) -> None:
        [generated] = generate([_asset(self.HANDLERS, "fresh\n")], context, previous={}.get).files
        assert (generated.content, generated.merged) == ("fresh\n", False)

    def test_only_handlers_are_looked_up(self, context: GenerationContext) -> None:
        [generated] = generate(
            [_asset("v1/NAME/server.pytemplate", "x = 1\n")], context, previous={"add/server.py": "old"}.get
        ).files
        assert (generated.content, generated.merged) == ("x = 1\n", False)

    def test_unparsable_handlers_name_asset(self, context: GenerationContext) -> None:
        with pytest.raises(TemplateExecutionError, match="handlers.pytemplate"):
            generate([_asset(self.HANDLERS, "")], context, previous={"add/handlers.py": "def (:\n"}.get)
