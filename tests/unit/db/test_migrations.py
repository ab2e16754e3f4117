"""Tests for the user_version based migration runner."""

from __future__ import annotations

import sqlite3
from unittest.mock import patch

import pytest

from ctxload.db.connection import open_connection
from ctxload.db.migrations import MIGRATIONS, run_migrations, schema_version


@pytest.fixture
def bare_conn(tmp_path):
    conn = open_connection(tmp_path / "context.db")
    yield conn
    conn.close()


def _tables(conn) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {row["name"] for row in rows}


def test_fresh_store_is_version_zero(bare_conn):
    assert schema_version(bare_conn) == 0


def test_migrates_fresh_store_to_latest(bare_conn):
    assert run_migrations(bare_conn) == MIGRATIONS[-1][0]
    assert schema_version(bare_conn) == MIGRATIONS[-1][0]
    assert {"context_units", "plan_state", "audit_log"} <= _tables(bare_conn)


def test_second_run_is_a_no_op(bare_conn):
    run_migrations(bare_conn)
    # CREATE TABLE without IF NOT EXISTS would fail if v1 ran twice.
    assert run_migrations(bare_conn) == MIGRATIONS[-1][0]


def test_only_pending_migrations_run(bare_conn):
    run_migrations(bare_conn)
    extra = MIGRATIONS + [(2, ("CREATE TABLE v2_marker (x INTEGER)",))]

    with patch("ctxload.db.migrations.MIGRATIONS", extra):
        assert run_migrations(bare_conn) == 2

    assert "v2_marker" in _tables(bare_conn)
    assert schema_version(bare_conn) == 2


def test_failed_migration_rolls_back_to_previous_version(bare_conn):
    run_migrations(bare_conn)
    broken = MIGRATIONS + [
        (2, ("CREATE TABLE half_done (x INTEGER)", "CREATE TABLE audit_log (x INTEGER)")),
    ]

    with patch("ctxload.db.migrations.MIGRATIONS", broken):
        with pytest.raises(sqlite3.OperationalError):
            run_migrations(bare_conn)

    assert schema_version(bare_conn) == MIGRATIONS[-1][0]
    assert "half_done" not in _tables(bare_conn)
