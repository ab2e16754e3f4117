"""Tests for ctxload rich error messages."""

from __future__ import annotations

from ctxload.cli.errors import (
    err_audit_failed,
    err_budget_exceeded,
    err_config,
    err_load_failed,
    err_no_context,
    err_no_project,
    err_persist_failed,
    err_store,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _has_action(msg: str) -> bool:
    lower = msg.lower()
    return any(kw in lower for kw in ["run:", "pass ", "load fewer", "fix the file"])


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def test_err_no_project_names_marker_and_init() -> None:
    msg = err_no_project(".ctxload-dev")
    assert ".ctxload-dev" in msg
    assert "ctxload init" in msg
    assert _has_action(msg)


def test_err_budget_exceeded_shows_both_numbers() -> None:
    msg = err_budget_exceeded(130_500, 128_000)
    assert "130,500" in msg
    assert "128,000" in msg
    assert "🚨" in msg
    assert _has_action(msg)


def test_err_no_context_is_shrug_not_error() -> None:
    msg = err_no_context()
    assert msg.startswith("🤷 No context loaded")
    assert "[red]" not in msg
    assert _has_action(msg)


def test_err_load_failed_escapes_markup() -> None:
    msg = err_load_failed("Failed to read [bold]x[/bold]")
    assert "\\[bold]" in msg


def test_err_config_has_action() -> None:
    msg = err_config("Config file 'x' is not valid YAML")
    assert "not valid YAML" in msg
    assert _has_action(msg)


def test_err_persist_failed_points_to_ls() -> None:
    msg = err_persist_failed("Failed to write context units: disk full")
    assert "disk full" in msg
    assert "ctxload ls" in msg


def test_err_audit_failed_is_a_warning() -> None:
    msg = err_audit_failed("database is locked")
    assert "Warning" in msg
    assert "database is locked" in msg


def test_err_store_names_file_and_recovery() -> None:
    msg = err_store("/p/.ctxload/context.db", "file is not a database")
    assert "/p/.ctxload/context.db" in msg
    assert "file is not a database" in msg
    assert "ctxload init" in msg
    assert _has_action(msg)
