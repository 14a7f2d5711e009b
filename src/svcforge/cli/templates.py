from typing import Annotated

import typer
from rich.table import Table

from svcforge.cli.common import TemplateDirOpt, console, fail
from svcforge.core.assets import load_assets
from svcforge.core.paths import template_path_to_actual


def templates(
    template_dir: TemplateDirOpt = None,
    package_name: Annotated[str, typer.Option(help="Package name substituted for NAME.")] = "NAME",
) -> None:
    """List template assets and the output path each one maps to."""
    try:
        assets = load_assets(template_dir)
    except FileNotFoundError as exc:
        fail(exc)

    table = Table(show_lines=False)
    table.add_column("template")
    table.add_column("output")
    for asset in assets:
        table.add_row(asset.stored_path, template_path_to_actual(asset.stored_path, package_name))
    console.print(table)
    console.print(f"({len(assets)} templates)")
