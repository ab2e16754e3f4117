"""ctxload projects: list projects above and below the current directory."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from ctxload.cli.common import load_workspace
from ctxload.cli.errors import err_config, err_load_failed
from ctxload.errors import ConfigError, LoadIOError
from ctxload.project.locator import ProjectRef, ancestors, descendants

console = Console()


def projects_cmd(
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", min=0.0, help="Seconds to spend searching subdirectories."),
    ] = None,
) -> None:
    """Show parent and child projects of the current directory."""
    ws, cfg = load_workspace(console, require_project=False)
    limit = timeout if timeout is not None else cfg.projects.descendant_timeout

    try:
        parents = ancestors(ws.cwd, ws.env)
        children = descendants(ws.cwd, ws.env, timeout=limit)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    except LoadIOError as exc:
        console.print(err_load_failed(str(exc)))
        raise typer.Exit(1)

    if not parents and not children:
        console.print("[dim]No parent or child projects found.[/]")
        return

    if parents:
        console.print(_table("Parent projects", parents))
    if children:
        console.print(_table("Child projects", children))


def _table(title: str, refs: list[ProjectRef]) -> Table:
    table = Table(title=title)
    table.add_column("Path", style="bold")
    table.add_column("Project id", style="dim")
    for ref in refs:
        table.add_row(str(ref.path), ref.project_id)
    return table
