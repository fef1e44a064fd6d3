"""devtoolbox CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from devtoolbox.cli.ask import ask_cmd, query_cmd
from devtoolbox.cli.init import init_cmd
from devtoolbox.cli.optimize import optimize_cmd
from devtoolbox.cli.sources import add_cmd, refresh_cmd, remove_cmd, show_cmd, sources_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("devtoolbox")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"devtoolbox {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, markup=False)],
        force=True,
    )


app = typer.Typer(
    name="devtoolbox",
    help=(
        "devtoolbox: project context for an AI coding assistant.\n\n"
        "  devtoolbox add     Fetch and chunk a GitHub repo, web page or file.\n"
        "  devtoolbox ask     Ask a question with the most relevant chunks attached."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """devtoolbox: project context for an AI coding assistant."""
    _configure_logging(verbose)


app.command("init")(init_cmd)
app.command("add")(add_cmd)
app.command("sources")(sources_cmd)
app.command("show")(show_cmd)
app.command("refresh")(refresh_cmd)
app.command("remove")(remove_cmd)
app.command("query")(query_cmd)
app.command("ask")(ask_cmd)
app.command("optimize-prompt")(optimize_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed devtoolbox version."""
    typer.echo(f"devtoolbox {_version()}")


if __name__ == "__main__":
    app()
