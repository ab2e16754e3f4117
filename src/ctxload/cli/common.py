"""Shared command setup: workspace discovery and config loading."""

from __future__ import annotations

import typer
from rich.console import Console

from ctxload.cli.errors import err_config, err_load_failed, err_no_project
from ctxload.config import CtxloadConfig, load_config
from ctxload.errors import ConfigError, LoadIOError, ProjectNotFoundError
from ctxload.workspace import Workspace, ensure_home


def load_workspace(console: Console, require_project: bool = True) -> tuple[Workspace, CtxloadConfig]:
    """Discover the workspace and merged config, or print an error and exit 1."""
    ws = Workspace.discover()
    if require_project:
        try:
            ws.require_project()
        except ProjectNotFoundError:
            console.print(err_no_project(ws.marker_name))
            raise typer.Exit(1)

    try:
        ensure_home(ws)
        cfg = load_config(ws.marker_dir, global_config_path=ws.global_config_path)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    except LoadIOError as exc:
        console.print(err_load_failed(str(exc)))
        raise typer.Exit(1)
    return ws, cfg
