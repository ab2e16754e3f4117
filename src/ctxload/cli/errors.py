"""ctxload rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it, where there is one

Usage:
    from ctxload.cli.errors import err_no_project
    console.print(err_no_project(".ctxload"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_project(marker_name: str) -> str:
    """No marker directory in the current directory."""
    return (
        f"[red]Error:[/] No {marker_name} directory found in the current directory.\n"
        "  Run:  ctxload init"
    )


def err_budget_exceeded(attempted: int, maximum: int) -> str:
    """The load would push the context over the token ceiling."""
    return (
        f"[red]🚨 The total number of tokens ({attempted:,}) exceeds the maximum "
        f"allowed ({maximum:,})[/]\n"
        "  Nothing was loaded. Load fewer or smaller sources, or raise context.max_tokens."
    )


def err_no_context() -> str:
    """Nothing to load. This is not a system failure."""
    return (
        "🤷 No context loaded\n"
        "  Pass files, directories (with -r or --tree), URLs, --note, or pipe data on stdin."
    )


def err_load_failed(cause: str) -> str:
    """A source could not be read, listed, or fetched."""
    return f"[red]Error:[/] {escape(cause)}"


def err_config(cause: str) -> str:
    """A config, ignore, or settings file is invalid."""
    return (
        f"[red]Config error:[/] {escape(cause)}\n"
        "  Fix the file named above and try again."
    )


def err_persist_failed(cause: str) -> str:
    """Context units or plan state could not be written."""
    return (
        f"[red]Error:[/] {escape(cause)}\n"
        "  The context store may be partially updated. Run:  ctxload ls"
    )


def err_audit_failed(cause: str) -> str:
    """Context was saved but the audit entry was not."""
    return (
        "[yellow]Warning:[/] Context was saved, but the change could not be recorded.\n"
        f"  {escape(cause)}"
    )


def err_store(db_path: object, cause: object) -> str:
    """The context store cannot be created, opened, or read."""
    return (
        f"[red]Error:[/] Cannot open the context store '{escape(str(db_path))}': "
        f"{escape(str(cause))}\n"
        "  Check the file's permissions. If it is damaged, move it aside and run:  ctxload init"
    )
