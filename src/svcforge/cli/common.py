from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from svcforge.config import ENV_PREFIX, GeneratorConfig
from svcforge.core.schema import SchemaRequest, load_request
from svcforge.errors import SchemaLoadError
from svcforge.models import Diagnostic

console = Console()
err_console = Console(stderr=True, soft_wrap=True)

SchemaArg = Annotated[
    Path,
    typer.Argument(
        help="Compiled schema: a FileDescriptorSet (protoc --include_source_info -o) or a CodeGeneratorRequest.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]
StrictOpt = Annotated[
    bool,
    typer.Option("--strict/--best-effort", help="Abort on the first bad comment location.", envvar=f"{ENV_PREFIX}STRICT"),
]
PackageOpt = Annotated[
    str | None,
    typer.Option(help="Name of the generated Python package.", envvar=f"{ENV_PREFIX}PACKAGE_NAME"),
]
ServiceOpt = Annotated[
    str | None,
    typer.Option(help="Service to generate against (default: the first one).", envvar=f"{ENV_PREFIX}SERVICE"),
]
TemplateDirOpt = Annotated[
    Path | None,
    typer.Option(
        help="Directory of templates to use instead of the bundled ones.",
        envvar=f"{ENV_PREFIX}TEMPLATE_DIR",
        file_okay=False,
    ),
]


def read_schema(path: Path) -> SchemaRequest:
    return load_request(path.read_bytes())


def fail(exc: Exception) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(1)


def build_config(**values: object) -> GeneratorConfig:
    try:
        return GeneratorConfig(**values)  # type: ignore[arg-type]
    except ValueError as exc:
        raise SchemaLoadError(f"invalid options: {exc}") from exc


def print_diagnostics(records: list[Diagnostic]) -> None:
    for record in records:
        if record.level in ("warning", "error"):
            colour = "yellow" if record.level == "warning" else "red"
            err_console.print(f"[{colour}]{record.code}[/{colour}] {escape(record.message)}", highlight=False)
