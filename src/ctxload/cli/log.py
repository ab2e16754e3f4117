"""ctxload log: show the audit log of context changes, newest first."""

from __future__ import annotations

import sqlite3
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from ctxload.cli.common import load_workspace
from ctxload.cli.errors import err_store
from ctxload.db.connection import Database
from ctxload.db.repository import Repository

console = Console()


def log_cmd(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", min=1, help="Number of entries to show."),
    ] = 10,
) -> None:
    """Show recent context changes."""
    ws, _cfg = load_workspace(console)

    try:
        with Database(ws.db_path, migrate=True) as conn:
            entries = Repository(conn).list_audit_entries(limit)
    except (sqlite3.Error, OSError) as exc:
        console.print(err_store(ws.db_path, exc))
        raise typer.Exit(1)

    if not entries:
        console.print("[dim]No changes recorded yet.[/]")
        return

    for revision, created_at, message in entries:
        console.print(f"[bold]#{revision}[/]  [dim]{created_at}[/]")
        console.print(escape(message))
