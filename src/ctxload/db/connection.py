"""SQLite connection layer for the project-local context store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

# Milliseconds a writer waits on another connection's lock before failing.
BUSY_TIMEOUT_MS = 10_000

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA foreign_keys = ON",
    f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}",
)


def open_connection(db_path: Path | str) -> sqlite3.Connection:
    """Open *db_path* with name-addressable rows and the store's pragmas applied.

    A connection belongs to the thread that opened it. Concurrent writers
    each open their own.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    return conn


class Database:
    """Context manager over the context store at ``<marker>/context.db``.

    With ``migrate=True`` pending schema migrations are applied on entry, so
    callers that may be the first to touch a store do not need a separate
    initialization step.
    """

    def __init__(self, db_path: Path | str, *, migrate: bool = False) -> None:
        self.db_path = Path(db_path)
        self.migrate = migrate
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        conn = open_connection(self.db_path)
        if self.migrate:
            from ctxload.db.schema import initialize

            initialize(conn)
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
