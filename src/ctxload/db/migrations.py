"""Forward-only schema migrations for the context store.

The applied version lives in SQLite's ``user_version`` header field, so a
fresh file reports 0 and needs no bookkeeping table.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_V1 = (
    """
    CREATE TABLE context_units (
        id              TEXT PRIMARY KEY,
        kind            TEXT NOT NULL,
        name            TEXT NOT NULL,
        body            TEXT NOT NULL,
        content_hash    TEXT NOT NULL,
        token_count     INTEGER NOT NULL CHECK (token_count >= 0),
        source_path     TEXT,
        source_url      TEXT,
        created_at      TEXT NOT NULL,
        updated_at      TEXT NOT NULL
    )
    """,
    "CREATE INDEX idx_context_units_hash ON context_units(content_hash)",
    # One row (id = 1) holding the project's token counters.
    """
    CREATE TABLE plan_state (
        id                          INTEGER PRIMARY KEY CHECK (id = 1),
        context_tokens              INTEGER NOT NULL DEFAULT 0,
        context_updatable_tokens    INTEGER NOT NULL DEFAULT 0,
        updated_at                  TEXT,
        CHECK (context_tokens >= context_updatable_tokens),
        CHECK (context_updatable_tokens >= 0)
    )
    """,
    """
    CREATE TABLE audit_log (
        revision    INTEGER PRIMARY KEY AUTOINCREMENT,
        message     TEXT NOT NULL,
        created_at  TEXT NOT NULL DEFAULT (datetime('now'))
    )
    """,
)

# Append-only: (version, statements). Never edit a released entry.
MIGRATIONS: list[tuple[int, tuple[str, ...]]] = [
    (1, _V1),
]


def schema_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply every migration newer than the store's version; return the final version.

    Each migration runs in its own transaction together with its version bump,
    so an interrupted run leaves the store at the last complete version.
    """
    current = schema_version(conn)
    for version, statements in MIGRATIONS:
        if version <= current:
            continue
        with conn:
            conn.execute("BEGIN")
            for statement in statements:
                conn.execute(statement)
            # PRAGMA does not accept bound parameters.
            conn.execute(f"PRAGMA user_version = {int(version)}")
        logger.debug("Context store migrated to schema version %d", version)
        current = version
    return current
