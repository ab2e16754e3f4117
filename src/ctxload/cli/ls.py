"""ctxload ls: show loaded context units and the token totals."""

from __future__ import annotations

import sqlite3

import typer
from rich.console import Console
from rich.panel import Panel

from ctxload.cli.common import load_workspace
from ctxload.cli.errors import err_store
from ctxload.context.summary import units_table
from ctxload.db.connection import Database
from ctxload.db.repository import Repository

console = Console()


def ls_cmd() -> None:
    """List context units loaded into the current project."""
    ws, cfg = load_workspace(console)

    try:
        with Database(ws.db_path, migrate=True) as conn:
            repo = Repository(conn)
            units = repo.list_context_units()
            state = repo.get_plan_state()
    except (sqlite3.Error, OSError) as exc:
        console.print(err_store(ws.db_path, exc))
        raise typer.Exit(1)

    if not units:
        console.print("[dim]No context loaded yet.[/]  Run:  ctxload load <file-or-url>")
        raise typer.Exit(0)

    console.print(units_table(units))
    console.print(
        Panel(
            f"Total:      [bold]{state.context_tokens:,}[/] / {cfg.context.max_tokens:,} 🪙\n"
            f"Updatable:  {state.context_updatable_tokens:,} 🪙",
            title="[bold]Context[/]",
            expand=False,
        )
    )
