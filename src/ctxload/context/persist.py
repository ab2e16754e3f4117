"""Persistence coordinator: writes units and counters, then records an audit entry.

The unit write and the plan-state write run concurrently on separate
connections. Both are always attempted; a write that succeeded is not rolled
back when the other fails.
"""

from __future__ import annotations

import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ctxload.context.models import ContextUnit, PlanState, now_ts
from ctxload.db.connection import Database
from ctxload.db.repository import Repository
from ctxload.db.schema import ensure_store
from ctxload.errors import AuditLogError, LoadIOError, PersistenceError

logger = logging.getLogger(__name__)


class PersistenceCoordinator:
    """Commits one ingestion batch to the context store at *db_path*."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def read_plan_state(self) -> PlanState:
        """Current counters, creating or upgrading the store first.

        Raises:
            LoadIOError: The store cannot be opened or read.
        """
        try:
            with Database(self.db_path, migrate=True) as conn:
                return Repository(conn).get_plan_state()
        except (sqlite3.Error, OSError) as exc:
            raise LoadIOError(f"Cannot read the context store '{self.db_path}': {exc}") from exc

    def commit(self, units: list[ContextUnit], totals: PlanState, audit_message: str) -> int:
        """Persist *units* and *totals*, then append *audit_message* to the audit log.

        Returns:
            The audit revision number.

        Raises:
            PersistenceError: The store could not be prepared, or the unit write
                and/or the plan-state write failed.
            AuditLogError: Both writes succeeded but the audit entry did not.
        """
        try:
            ensure_store(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(store_error=exc) from exc

        timestamp = now_ts()
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ctxload-persist") as pool:
            units_future = pool.submit(self._write_units, units)
            state_future = pool.submit(self._write_state, totals, timestamp)
            context_error = units_future.exception()
            state_error = state_future.exception()

        if context_error is not None or state_error is not None:
            raise PersistenceError(context_error=context_error, state_error=state_error)
        logger.info(
            "Persisted %d context units (total %d tokens)", len(units), totals.context_tokens
        )

        try:
            with Database(self.db_path) as conn:
                return Repository(conn).add_audit_entry(audit_message)
        except (sqlite3.Error, OSError) as exc:
            raise AuditLogError(f"Failed to record context update in the audit log: {exc}") from exc

    def _write_units(self, units: list[ContextUnit]) -> int:
        with Database(self.db_path) as conn:
            return Repository(conn).add_context_units(units)

    def _write_state(self, totals: PlanState, timestamp: str) -> None:
        with Database(self.db_path) as conn:
            Repository(conn).set_plan_state(totals, timestamp)
