"""End-to-end runs shared by the CLI commands and the protoc plugin."""

from __future__ import annotations

import logging

from svcforge.config import GeneratorConfig
from svcforge.core.assets import load_assets
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.doctree import new_service_definition
from svcforge.core.generate import GenerationResult, PreviousFiles, generate, new_context
from svcforge.core.render import markdown
from svcforge.core.schema import SchemaRequest
from svcforge.errors import ServiceNotFoundError
from svcforge.models import GeneratedFile, ServiceDefinition

logger = logging.getLogger(__name__)


def build_definition(
    request: SchemaRequest, config: GeneratorConfig, diagnostics: Diagnostics | None = None
) -> ServiceDefinition:
    if not request.files_to_generate:
        raise ServiceNotFoundError("the schema names no files to generate")
    return new_service_definition(
        request.proto_files, request.files_to_generate, policy=config.walk_policy, diagnostics=diagnostics
    )


def run_generation(
    request: SchemaRequest,
    config: GeneratorConfig,
    diagnostics: Diagnostics | None = None,
    with_docs: bool = False,
    previous: PreviousFiles | None = None,
) -> GenerationResult:
    """Correlate ``request``, then render every template asset for the selected service.

    With ``with_docs`` the Markdown documentation of the schema is appended as
    ``docs/<package>.md``. ``previous`` gives access to the files of an
    earlier run so the handlers module can be updated in place.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    definition = build_definition(request, config, diagnostics)
    context = new_context(definition, config)
    assets = load_assets(config.template_dir)
    result = generate(assets, context, workers=config.workers, diagnostics=diagnostics, previous=previous)

    if with_docs:
        docs_path = f"docs/{context.package_name}.md"
        result.files.append(GeneratedFile(path=docs_path, content=markdown(definition), asset_path=""))
        logger.debug("Appended documentation as %s", docs_path)
    return result
