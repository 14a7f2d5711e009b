import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from svcforge import __version__
from svcforge.cli.docs import docs
from svcforge.cli.generate import generate
from svcforge.cli.plugin import plugin
from svcforge.cli.templates import templates

app = typer.Typer(
    name="svcforge",
    help="svcforge CLI: document protobuf services and generate HTTP service code from them.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version(value: bool) -> None:
    if value:
        typer.echo(f"svcforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output.")] = False,
    version: Annotated[
        bool, typer.Option("--version", callback=_version, is_eager=True, help="Show the version and exit.")
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
        force=True,
    )


app.command("generate")(generate)
app.command("docs")(docs)
app.command("plugin")(plugin)
app.command("templates")(templates)


def main() -> None:
    app()
