import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from svcforge.cli.common import (
    PackageOpt,
    SchemaArg,
    ServiceOpt,
    StrictOpt,
    TemplateDirOpt,
    build_config,
    console,
    fail,
    print_diagnostics,
    read_schema,
)
from svcforge.config import ENV_PREFIX
from svcforge.core.diagnostics import Diagnostics
from svcforge.core.generate import PreviousFiles
from svcforge.core.pipeline import run_generation
from svcforge.errors import SvcforgeError
from svcforge.models import GeneratedFile

logger = logging.getLogger(__name__)


def _is_regenerated(generated: GeneratedFile) -> bool:
    # Only transport code is owned by svcforge; everything else is created once.
    return "/generated/" in f"/{generated.path}" or generated.path.startswith("docs/")


def existing_files(out_dir: Path) -> PreviousFiles:
    """Return a lookup of the current text of files below ``out_dir``."""

    def _read(path: str) -> str | None:
        target = out_dir / path
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    return _read


def write_files(files: list[GeneratedFile], out_dir: Path, force: bool = False) -> list[tuple[str, str]]:
    """Write ``files`` below ``out_dir`` and return ``(path, status)`` pairs.

    Existing user-editable files are kept unless ``force`` is set or the file
    was updated from its previous text.
    """
    rows: list[tuple[str, str]] = []
    for generated in files:
        target = out_dir / generated.path
        if target.exists() and not force and not generated.merged and not _is_regenerated(generated):
            logger.info("Keeping existing %s", target)
            rows.append((generated.path, "kept"))
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
        if generated.merged:
            status = "updated"
        else:
            status = "written" if generated.formatted else "written (unformatted)"
        rows.append((generated.path, status))
    return rows


def generate(
    schema: SchemaArg,
    out: Annotated[Path, typer.Option("--out", "-o", help="Output directory.", file_okay=False)] = Path("."),
    package_name: PackageOpt = None,
    handler_import: Annotated[
        str | None, typer.Option(help="Import path of the handlers package.", envvar=f"{ENV_PREFIX}HANDLER_IMPORT")
    ] = None,
    generated_import: Annotated[
        str | None,
        typer.Option(help="Import path of the generated package.", envvar=f"{ENV_PREFIX}GENERATED_IMPORT"),
    ] = None,
    template_dir: TemplateDirOpt = None,
    service: ServiceOpt = None,
    workers: Annotated[int, typer.Option(help="Templates rendered in parallel.", envvar=f"{ENV_PREFIX}WORKERS")] = 1,
    strict: StrictOpt = False,
    docs: Annotated[bool, typer.Option("--docs/--no-docs", help="Also write the Markdown documentation.")] = False,
    force: Annotated[bool, typer.Option(help="Overwrite user-editable files that already exist.")] = False,
) -> None:
    """Generate a service package from a compiled schema."""
    diagnostics = Diagnostics()
    try:
        config = build_config(
            package_name=package_name,
            handler_import=handler_import,
            generated_import=generated_import,
            template_dir=template_dir,
            service=service,
            workers=workers,
            strict=strict,
        )
        previous = None if force else existing_files(out)
        result = run_generation(read_schema(schema), config, diagnostics, with_docs=docs, previous=previous)
    except SvcforgeError as exc:
        fail(exc)
    print_diagnostics(diagnostics.records)

    rows = write_files(result.files, out, force=force)
    table = Table(show_lines=False)
    table.add_column("file")
    table.add_column("status")
    for path, status in rows:
        table.add_row(path, status)
    console.print(table)
    console.print(f"[green]Generated[/green] {len(rows)} file(s) in {out}")
