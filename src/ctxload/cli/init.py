"""ctxload init: mark the current directory as a project.

Creates (when missing):
  .ctxload/                   marker directory (.ctxload-dev when CTXLOAD_ENV=development)
  .ctxload/project.json       project settings holding a new project id
  .ctxload/context.db         context store with schema
  ~/.ctxload-home/config.yaml global model config (created once, mode 0o600)
"""

from __future__ import annotations

import sqlite3
import uuid

import typer
from rich.console import Console

from ctxload.cli.common import load_workspace
from ctxload.cli.errors import err_config, err_load_failed, err_store
from ctxload.config import ensure_global_config
from ctxload.db.schema import ensure_store
from ctxload.errors import ConfigError, LoadIOError
from ctxload.project.locator import ensure_exists, read_project_id, write_settings

console = Console()


def init_cmd() -> None:
    """Initialize a ctxload project in the current directory."""
    ws, _cfg = load_workspace(console, require_project=False)

    try:
        marker_dir, created = ensure_exists(ws.cwd, ws.env)
        project_id = read_project_id(marker_dir)
        if project_id is None:
            project_id = str(uuid.uuid4())
            write_settings(marker_dir, project_id)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    except LoadIOError as exc:
        console.print(err_load_failed(str(exc)))
        raise typer.Exit(1)

    ws = ws.with_project(marker_dir)
    try:
        ensure_store(ws.db_path)
    except (sqlite3.Error, OSError) as exc:
        console.print(err_store(ws.db_path, exc))
        raise typer.Exit(1)
    try:
        cfg_path = ensure_global_config(ws.global_config_path)
    except OSError as exc:
        console.print(
            err_load_failed(f"Cannot write global config '{ws.global_config_path}': {exc}")
        )
        raise typer.Exit(1)

    if created:
        console.print(f"  [green]✓[/] {marker_dir}")
        console.print(f"  [green]✓[/] {cfg_path} (global config)")
        console.print(f"\n[bold green]✓ Project {project_id} initialized.[/]")
        console.print("\nNext steps:")
        console.print("  1. ctxload load <file-or-url>     (load files or URLs)")
        console.print("  2. ctxload load -r src/           (load a directory's files)")
        console.print("  3. ctxload ls                     (show loaded context)")
    else:
        console.print(f"[yellow]⚠[/]  {marker_dir} already exists (project {project_id}).")
