"""ctxload load: load notes, piped data, files, directory trees, and URLs into context.

Resource dispatch:
  https:// / http://  → fetched, converted to text (one unit per URL)
  file                → one unit per file
  directory -r        → expanded to its non-ignored files, one unit per file
  directory --tree    → one unit holding the directory's path listing
  --note TEXT         → one note unit
  stdin pipe          → one piped-data unit
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from ctxload.cli.common import load_workspace
from ctxload.cli.errors import (
    err_audit_failed,
    err_budget_exceeded,
    err_config,
    err_load_failed,
    err_no_context,
    err_persist_failed,
)
from ctxload.context.collaborators import Collaborators, read_piped_stdin
from ctxload.context.engine import ContextLoader, LoadParams
from ctxload.context.summary import units_table
from ctxload.errors import (
    AuditLogError,
    BudgetExceededError,
    ConfigError,
    LoadIOError,
    NoContextError,
    PersistenceError,
)

console = Console()


def load_cmd(
    resources: Annotated[
        list[str] | None,
        typer.Argument(help="Files, directories, or URLs to load."),
    ] = None,
    note: Annotated[
        str,
        typer.Option("--note", "-n", help="Add a free-text note to context."),
    ] = "",
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Load the files inside directory arguments."),
    ] = False,
    tree: Annotated[
        bool,
        typer.Option("--tree", help="Load directory arguments as path listings only."),
    ] = False,
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", min=1, help="Override context.max_tokens."),
    ] = None,
) -> None:
    """Load resources into the project's context."""
    ws, cfg = load_workspace(console)

    params = LoadParams(
        note=note,
        piped_data=read_piped_stdin(),
        recursive=recursive,
        names_only=tree,
        max_tokens=max_tokens,
    )
    loader = ContextLoader(ws, cfg, Collaborators.from_config(cfg))

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("📥 Loading context…", total=None)
            result = loader.load(resources or [], params)
    except NoContextError:
        console.print(err_no_context())
        raise typer.Exit(1)
    except BudgetExceededError as exc:
        console.print(err_budget_exceeded(exc.attempted, exc.maximum))
        raise typer.Exit(1)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    except LoadIOError as exc:
        console.print(err_load_failed(str(exc)))
        raise typer.Exit(1)
    except PersistenceError as exc:
        console.print(err_persist_failed(str(exc)))
        raise typer.Exit(1)
    except AuditLogError as exc:
        console.print(err_audit_failed(str(exc)))
        raise typer.Exit(1)

    console.print(f"[green]✅ {result.message}[/]")
    console.print(units_table(result.units))
