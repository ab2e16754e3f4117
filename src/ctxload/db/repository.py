"""Repository pattern for all context store operations.

Single interface for: context units, the plan state counters, and the audit log.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable

from ctxload.context.models import ContextKind, ContextUnit, PlanState


class Repository:
    """Data access layer for the context store.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use; it must not be shared across threads.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see Database(..., migrate=True)).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Context units
    # ------------------------------------------------------------------

    def add_context_units(self, units: Iterable[ContextUnit]) -> int:
        """Append *units* in a single transaction. Returns the number inserted."""
        rows = [
            (
                u.id,
                u.kind.value,
                u.name,
                u.body,
                u.content_hash,
                u.token_count,
                u.source_path,
                u.source_url,
                u.created_at,
                u.updated_at,
            )
            for u in units
        ]
        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO context_units
                    (id, kind, name, body, content_hash, token_count,
                     source_path, source_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        return len(rows)

    def list_context_units(self) -> list[ContextUnit]:
        """Return all context units ordered by creation time (oldest first)."""
        rows = self._conn.execute(
            """
            SELECT id, kind, name, body, content_hash, token_count,
                   source_path, source_url, created_at, updated_at
            FROM context_units ORDER BY created_at, rowid
            """
        ).fetchall()
        return [_row_to_unit(r) for r in rows]

    def count_context_units(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM context_units").fetchone()[0]

    # ------------------------------------------------------------------
    # Plan state
    # ------------------------------------------------------------------

    def get_plan_state(self) -> PlanState:
        """Return the stored counters, or a zeroed PlanState if none were written yet."""
        row = self._conn.execute(
            "SELECT context_tokens, context_updatable_tokens, updated_at FROM plan_state WHERE id = 1"
        ).fetchone()
        if row is None:
            return PlanState()
        return PlanState(
            context_tokens=row["context_tokens"],
            context_updatable_tokens=row["context_updatable_tokens"],
            updated_at=row["updated_at"],
        )

    def set_plan_state(self, state: PlanState, timestamp: str) -> None:
        """Upsert the counters together with *timestamp*."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO plan_state (id, context_tokens, context_updatable_tokens, updated_at)
                VALUES (1, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    context_tokens = excluded.context_tokens,
                    context_updatable_tokens = excluded.context_updatable_tokens,
                    updated_at = excluded.updated_at
                """,
                (state.context_tokens, state.context_updatable_tokens, timestamp),
            )
        state.updated_at = timestamp

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    def add_audit_entry(self, message: str) -> int:
        """Append *message* to the audit log. Returns its revision number."""
        with self._conn:
            cur = self._conn.execute("INSERT INTO audit_log (message) VALUES (?)", (message,))
        return cur.lastrowid

    def list_audit_entries(self, limit: int | None = None) -> list[tuple[int, str, str]]:
        """Return [(revision, created_at, message), ...], newest first."""
        sql = "SELECT revision, created_at, message FROM audit_log ORDER BY revision DESC"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        return [
            (r["revision"], r["created_at"], r["message"])
            for r in self._conn.execute(sql, params).fetchall()
        ]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_unit(row: sqlite3.Row) -> ContextUnit:
    return ContextUnit(
        id=row["id"],
        kind=ContextKind(row["kind"]),
        name=row["name"],
        body=row["body"],
        content_hash=row["content_hash"],
        token_count=row["token_count"],
        source_path=row["source_path"],
        source_url=row["source_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
