"""Tests for the context store connection layer."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from ctxload.db.connection import BUSY_TIMEOUT_MS, Database, open_connection
from ctxload.db.schema import CURRENT_VERSION


def test_open_connection_applies_pragmas(tmp_path):
    conn = open_connection(tmp_path / "context.db")
    try:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == BUSY_TIMEOUT_MS
    finally:
        conn.close()
    assert (tmp_path / "context.db").exists()


def test_rows_are_addressable_by_name(tmp_path):
    with Database(tmp_path / "context.db") as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")
        conn.execute("INSERT INTO t VALUES (42)")
        assert conn.execute("SELECT x FROM t").fetchone()["x"] == 42


def test_plain_database_does_not_migrate(tmp_path):
    with Database(tmp_path / "context.db") as conn:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == 0


def test_migrate_flag_brings_store_up_to_date(tmp_path):
    with Database(str(tmp_path / "context.db"), migrate=True) as conn:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == CURRENT_VERSION
        assert conn.execute("SELECT COUNT(*) FROM context_units").fetchone()[0] == 0


def test_connection_closed_on_exit(tmp_path):
    db = Database(tmp_path / "context.db")
    assert isinstance(db.db_path, Path)
    with db as conn:
        conn.execute("SELECT 1")
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


def test_separate_connections_see_each_others_commits(tmp_path):
    path = tmp_path / "context.db"
    with Database(path) as writer:
        writer.execute("CREATE TABLE t (x INTEGER)")
        writer.execute("INSERT INTO t VALUES (1)")
        writer.commit()
        with Database(path) as reader:
            assert reader.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 1
