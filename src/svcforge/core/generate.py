"""Materialization of template assets into generated source files.

Each asset is rendered with jinja2 against one ``GenerationContext``, its
stored path is mapped to an output path and the text is passed through the
formatter for the output language. A template error aborts the run; a
formatter error only leaves that file unformatted. An existing handlers
module is updated to the service rather than rendered again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from jinja2 import StrictUndefined
from jinja2.sandbox import ImmutableSandboxedEnvironment
from pydantic import BaseModel, ConfigDict

from svcforge.config import GeneratorConfig
from svcforge.core import urls
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.handlers import is_handlers_asset, update_handlers
from svcforge.core.naming import camel_case, low_camel_name, snake_case
from svcforge.core.paths import template_path_to_actual
from svcforge.errors import FormatError, ServiceNotFoundError, TemplateExecutionError
from svcforge.formatters import formatter_for
from svcforge.models import GeneratedFile, ServiceDefinition, ServiceNode, TemplateAsset

logger = logging.getLogger(__name__)

# Returns the current text of an output path, or None when it does not exist.
PreviousFiles = Callable[[str], str | None]

TEMPLATE_FILTERS = {
    "lower": lambda s: str(s).lower(),
    "title": lambda s: str(s).title(),
    "upper": lambda s: str(s).upper(),
    "camel": camel_case,
    "low_camel": low_camel_name,
    "snake": snake_case,
    "join": lambda items, sep="": sep.join(str(i) for i in items),
}


class GenerationContext(BaseModel):
    """Everything a template may read during one generation pass."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    handler_import: str
    generated_import: str
    pb_import: str
    proto_package: str
    service: ServiceNode
    http_helpers_source: str

    def template_vars(self) -> dict[str, Any]:
        # Models are passed as objects so templates can use their helpers.
        return {name: getattr(self, name) for name in type(self).model_fields}


@dataclass
class GenerationResult:
    files: list[GeneratedFile]
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def pb_module(proto_name: str) -> str:
    """``pkg/add.proto`` -> ``pkg.add_pb2``, the module protoc emits for Python."""
    stem = proto_name.removesuffix(".proto").replace("-", "_")
    return stem.replace("/", ".") + "_pb2"


def new_context(definition: ServiceDefinition, config: GeneratorConfig | None = None) -> GenerationContext:
    """Build the context for the service selected by ``config`` (the first one by default)."""
    config = config or GeneratorConfig()
    for file in definition.files:
        for service in file.services:
            if config.service is None or service.name == config.service:
                package = config.package_for(service.name)
                return GenerationContext(
                    package_name=package,
                    handler_import=config.handler_import or package,
                    generated_import=config.generated_import or f"{package}.generated",
                    pb_import=pb_module(file.name),
                    proto_package=definition.name,
                    service=service,
                    http_helpers_source=urls.helpers_source(),
                )
    if config.service is not None:
        raise ServiceNotFoundError(f"service {config.service!r} is not declared in the files to generate")
    raise ServiceNotFoundError("the files to generate declare no service")


def new_environment() -> ImmutableSandboxedEnvironment:
    env = ImmutableSandboxedEnvironment(
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )
    # Templates only get the fixed helper set.
    env.filters = dict(TEMPLATE_FILTERS)
    env.globals = {}
    return env


def render_asset(
    env: ImmutableSandboxedEnvironment,
    asset: TemplateAsset,
    context: GenerationContext,
    previous: PreviousFiles | None = None,
) -> tuple[GeneratedFile, FormatError | None]:
    """Render and format one asset; return the file and the formatter error, if any.

    When ``previous`` returns the current text of the handlers module, that text
    is updated to the service's methods instead of being rendered afresh.
    """
    path = template_path_to_actual(asset.stored_path, context.package_name)
    try:
        existing = previous(path) if previous is not None and is_handlers_asset(asset.stored_path) else None
        if existing is None:
            text = env.from_string(asset.text).render(context.template_vars())
        else:
            text = update_handlers(env, existing, context.service)
    except Exception as exc:
        # Filters and expressions raise builtin errors on bad operands.
        raise TemplateExecutionError(asset.stored_path, exc) from exc

    if existing is not None and text == existing:
        return GeneratedFile(path=path, content=existing, asset_path=asset.stored_path), None
    merged = existing is not None
    try:
        content = formatter_for(path).format(text)
    except FormatError as exc:
        generated = GeneratedFile(
            path=path, content=text, asset_path=asset.stored_path, formatted=False, merged=merged
        )
        return generated, exc
    return GeneratedFile(path=path, content=content, asset_path=asset.stored_path, merged=merged), None


def generate(
    assets: Sequence[TemplateAsset],
    context: GenerationContext,
    workers: int = 1,
    diagnostics: Diagnostics | None = None,
    previous: PreviousFiles | None = None,
) -> GenerationResult:
    """Render every asset against ``context``.

    Files are returned in asset order whatever the completion order of the
    workers. Raises ``TemplateExecutionError`` for the first failing asset.
    ``previous`` looks up files of an earlier run; see ``render_asset``.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    env = new_environment()

    def _render(asset: TemplateAsset) -> tuple[GeneratedFile, FormatError | None]:
        return render_asset(env, asset, context, previous)

    if workers > 1 and len(assets) > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="svcforge-render") as pool:
            rendered = list(pool.map(_render, assets))
    else:
        rendered = [_render(asset) for asset in assets]

    by_path: dict[str, GeneratedFile] = {}
    for generated, format_error in rendered:
        if format_error is not None:
            diagnostics.warning(
                "FormatError", str(format_error), path=generated.path, asset=generated.asset_path
            )
        if generated.path in by_path:
            diagnostics.warning(
                "DuplicateOutput",
                f"{generated.asset_path} overwrites {by_path[generated.path].asset_path} at {generated.path}",
                path=generated.path,
            )
        by_path[generated.path] = generated

    logger.info("Generated %d file(s) for service %s", len(by_path), context.service.name)
    return GenerationResult(files=list(by_path.values()), diagnostics=diagnostics)
