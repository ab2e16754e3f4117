"""ctxload CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from ctxload.cli.init import init_cmd
from ctxload.cli.load import load_cmd
from ctxload.cli.log import log_cmd
from ctxload.cli.ls import ls_cmd
from ctxload.cli.projects import projects_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("ctxload")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ctxload {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route the ``ctxload`` logger through rich on stderr."""
    logger = logging.getLogger("ctxload")
    logger.handlers[:] = [
        RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    ]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


app = typer.Typer(
    name="ctxload",
    help=(
        "ctxload: load files, directory trees, URLs, and notes into a token-bounded context.\n\n"
        "  ctxload init      Mark the current directory as a project.\n"
        "  ctxload load      Load resources into context."
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
    """ctxload: token-bounded context loader."""
    _configure_logging(verbose)


app.command("init")(init_cmd)
app.command("load")(load_cmd)
app.command("ls")(ls_cmd)
app.command("log")(log_cmd)
app.command("projects")(projects_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed ctxload version."""
    typer.echo(f"ctxload {_version()}")


if __name__ == "__main__":
    app()
