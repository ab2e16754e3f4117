"""Human-readable summaries of a load: the one-line message and the unit table."""

from __future__ import annotations

import io

from rich.console import Console
from rich.table import Table

from ctxload.context.models import ContextKind, ContextUnit

_ICONS: dict[ContextKind, str] = {
    ContextKind.NOTE: "✏️",
    ContextKind.PIPED_DATA: "↔️",
    ContextKind.FILE: "📄",
    ContextKind.URL: "🌎",
    ContextKind.DIRECTORY_TREE: "🗂",
}


def _plural(n: int, singular: str, plural: str) -> str:
    return f"{n} {singular if n == 1 else plural}"


def join_items(items: list[str]) -> str:
    """'a and b' for two items, 'a, b, and c' for more."""
    if len(items) <= 2:
        return " and ".join(items)
    return ", ".join(items[:-1]) + ", and " + items[-1]


def load_message(
    *,
    note: bool,
    piped: bool,
    num_paths: int,
    names_only: bool,
    num_urls: int,
    tokens_added: int,
    total_tokens: int,
) -> str:
    """'Loaded a note and 2 files into context | added → 30 🪙 | total → 90 🪙'.

    Path and URL counts refer to the arguments given, not expanded files.
    """
    added: list[str] = []
    if note:
        added.append("a note")
    if piped:
        added.append("piped data")
    if num_paths:
        if names_only:
            added.append(_plural(num_paths, "directory tree", "directory trees"))
        else:
            added.append(_plural(num_paths, "file", "files"))
    if num_urls:
        added.append(_plural(num_urls, "url", "urls"))

    return (
        f"Loaded {join_items(added)} into context"
        f" | added → {tokens_added} 🪙 | total → {total_tokens} 🪙"
    )


def units_table(units: list[ContextUnit], title: str | None = None) -> Table:
    """Rich table of (name, kind, token delta) for *units*."""
    table = Table(title=title, show_lines=False)
    table.add_column("Name", style="bold green", no_wrap=True)
    table.add_column("Type", style="green")
    table.add_column("🪙", style="green", justify="right")
    for unit in units:
        table.add_row(
            f"{_ICONS.get(unit.kind, '')} {unit.name}",
            unit.kind.value,
            f"+{unit.token_count}",
        )
    return table


def render_plain(table: Table, width: int = 100) -> str:
    """Render *table* to plain text (no ANSI styling) for storage."""
    buf = io.StringIO()
    Console(file=buf, width=width, no_color=True, color_system=None).print(table)
    return buf.getvalue()


def audit_message(message: str, units: list[ContextUnit]) -> str:
    """Audit entry body: the summary line followed by the unit table."""
    return message + "\n\n" + render_plain(units_table(units))
