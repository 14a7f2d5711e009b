from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from svcforge.cli.common import SchemaArg, StrictOpt, build_config, console, fail, print_diagnostics, read_schema
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.pipeline import build_definition
from svcforge.core.render import describe, markdown
from svcforge.errors import SvcforgeError


class DocFormat(str, Enum):
    text = "text"
    markdown = "markdown"


def docs(
    schema: SchemaArg,
    fmt: Annotated[DocFormat, typer.Option("--format", "-f", help="Output format.")] = DocFormat.markdown,
    out: Annotated[Path | None, typer.Option("--out", "-o", help="Write to this file instead of stdout.")] = None,
    strict: StrictOpt = False,
) -> None:
    """Render the documentation tree of a schema."""
    diagnostics = Diagnostics()
    try:
        definition = build_definition(read_schema(schema), build_config(strict=strict), diagnostics)
    except SvcforgeError as exc:
        fail(exc)
    print_diagnostics(diagnostics.records)

    text = markdown(definition) if fmt is DocFormat.markdown else describe(definition)
    if out is None:
        typer.echo(text, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {out}")
