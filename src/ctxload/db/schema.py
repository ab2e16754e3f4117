"""Context store schema entry points."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ctxload.db.connection import Database
from ctxload.db.migrations import MIGRATIONS, run_migrations

CURRENT_VERSION = MIGRATIONS[-1][0]


def initialize(conn: sqlite3.Connection) -> int:
    """Bring the store on *conn* up to CURRENT_VERSION. Safe to call repeatedly."""
    return run_migrations(conn)


def ensure_store(db_path: Path | str) -> int:
    """Create or upgrade the store file at *db_path*; return its schema version."""
    with Database(db_path) as conn:
        return initialize(conn)
