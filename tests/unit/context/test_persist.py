"""Tests for the persistence coordinator."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from ctxload.context.models import ContextKind, ContextUnit, PlanState
from ctxload.context.persist import PersistenceCoordinator
from ctxload.db.connection import Database
from ctxload.db.repository import Repository
from ctxload.errors import AuditLogError, LoadIOError, PersistenceError


@pytest.fixture
def coordinator(tmp_path: Path) -> PersistenceCoordinator:
    return PersistenceCoordinator(tmp_path / "context.db")


def _units() -> list[ContextUnit]:
    return [
        ContextUnit.create(ContextKind.FILE, "x.txt", "one two", 2, source_path="x.txt"),
        ContextUnit.create(ContextKind.NOTE, "note", "three", 1),
    ]


def test_read_plan_state_on_fresh_store(coordinator: PersistenceCoordinator) -> None:
    state = coordinator.read_plan_state()
    assert state == PlanState()
    assert coordinator.db_path.exists()


def test_commit_writes_units_state_and_audit(coordinator: PersistenceCoordinator) -> None:
    revision = coordinator.commit(_units(), PlanState(3, 2), "Loaded things")

    assert revision == 1
    with Database(coordinator.db_path) as conn:
        repo = Repository(conn)
        assert [u.name for u in repo.list_context_units()] == ["x.txt", "note"]
        state = repo.get_plan_state()
        assert (state.context_tokens, state.context_updatable_tokens) == (3, 2)
        assert state.updated_at
        assert repo.list_audit_entries()[0][2] == "Loaded things"


def test_revisions_increase(coordinator: PersistenceCoordinator) -> None:
    first = coordinator.commit(_units(), PlanState(3, 2), "first")
    second = coordinator.commit(_units(), PlanState(6, 4), "second")
    assert second == first + 1
    assert coordinator.read_plan_state().context_tokens == 6


def test_unit_write_failure_keeps_state_write(coordinator: PersistenceCoordinator) -> None:
    with patch.object(
        Repository, "add_context_units", side_effect=sqlite3.OperationalError("disk full")
    ):
        with pytest.raises(PersistenceError) as exc_info:
            coordinator.commit(_units(), PlanState(3, 2), "msg")

    err = exc_info.value
    assert isinstance(err.context_error, sqlite3.OperationalError)
    assert err.state_error is None
    assert "disk full" in str(err)
    # The successful write is not rolled back; no audit entry is recorded.
    with Database(coordinator.db_path) as conn:
        repo = Repository(conn)
        assert repo.get_plan_state().context_tokens == 3
        assert repo.list_audit_entries() == []


def test_both_write_failures_are_reported(coordinator: PersistenceCoordinator) -> None:
    with patch.object(
        Repository, "add_context_units", side_effect=sqlite3.OperationalError("units broke")
    ), patch.object(Repository, "set_plan_state", side_effect=sqlite3.OperationalError("state broke")):
        with pytest.raises(PersistenceError) as exc_info:
            coordinator.commit(_units(), PlanState(3, 2), "msg")

    assert "units broke" in str(exc_info.value)
    assert "state broke" in str(exc_info.value)


def test_audit_failure_after_successful_writes(coordinator: PersistenceCoordinator) -> None:
    with patch.object(
        Repository, "add_audit_entry", side_effect=sqlite3.OperationalError("locked")
    ):
        with pytest.raises(AuditLogError, match="locked"):
            coordinator.commit(_units(), PlanState(3, 2), "msg")

    with Database(coordinator.db_path) as conn:
        assert Repository(conn).count_context_units() == 2


def test_unreadable_store_is_load_io_error(tmp_path: Path) -> None:
    db_path = tmp_path / "context.db"
    db_path.write_bytes(b"this is not an sqlite database" * 64)

    with pytest.raises(LoadIOError, match="Cannot read the context store"):
        PersistenceCoordinator(db_path).read_plan_state()


def test_store_preparation_failure_skips_both_writes(
    coordinator: PersistenceCoordinator,
) -> None:
    with patch(
        "ctxload.context.persist.ensure_store",
        side_effect=sqlite3.OperationalError("unable to open database file"),
    ), patch.object(Repository, "add_context_units") as add_units, patch.object(
        Repository, "set_plan_state"
    ) as set_state:
        with pytest.raises(PersistenceError, match="context store: unable to open") as exc_info:
            coordinator.commit(_units(), PlanState(3, 2), "msg")

    assert isinstance(exc_info.value.store_error, sqlite3.OperationalError)
    assert exc_info.value.context_error is None
    add_units.assert_not_called()
    set_state.assert_not_called()
