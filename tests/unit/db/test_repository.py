"""Tests for the Repository pattern."""

from __future__ import annotations

import pytest

from ctxload.context.models import ContextKind, ContextUnit, PlanState
from ctxload.db.repository import Repository


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


def _unit(name="x.txt", kind=ContextKind.FILE, body="hello world", tokens=2, **kwargs):
    return ContextUnit.create(kind, name, body, tokens, **kwargs)


# ------------------------------------------------------------------
# Context units
# ------------------------------------------------------------------

def test_add_and_list_units(repo):
    added = repo.add_context_units(
        [_unit(source_path="x.txt"), _unit("docs", ContextKind.URL, source_url="https://d.io")]
    )
    assert added == 2

    units = repo.list_context_units()
    assert [u.name for u in units] == ["x.txt", "docs"]
    assert units[0].kind is ContextKind.FILE
    assert units[0].source_path == "x.txt"
    assert units[1].source_url == "https://d.io"


def test_unit_round_trip_preserves_fields(repo):
    original = _unit(body="ünïcode body", tokens=7, source_path="a/b.py")
    repo.add_context_units([original])
    [stored] = repo.list_context_units()
    assert stored == original


def test_add_empty_batch(repo):
    assert repo.add_context_units([]) == 0
    assert repo.count_context_units() == 0


def test_duplicate_id_rejected_atomically(repo):
    import sqlite3

    unit = _unit()
    with pytest.raises(sqlite3.IntegrityError):
        repo.add_context_units([_unit("other.txt"), unit, unit])
    assert repo.count_context_units() == 0


def test_identical_bodies_share_hash(repo):
    repo.add_context_units([_unit("a.txt"), _unit("b.txt")])
    a, b = repo.list_context_units()
    assert a.content_hash == b.content_hash


# ------------------------------------------------------------------
# Plan state
# ------------------------------------------------------------------

def test_get_plan_state_defaults_to_zero(repo):
    assert repo.get_plan_state() == PlanState()


def test_set_plan_state_upserts(repo):
    first = PlanState(10, 4)
    repo.set_plan_state(first, "2024-01-01T00:00:00.000+00:00")
    assert first.updated_at == "2024-01-01T00:00:00.000+00:00"

    repo.set_plan_state(PlanState(25, 9), "2024-01-02T00:00:00.000+00:00")
    state = repo.get_plan_state()
    assert (state.context_tokens, state.context_updatable_tokens) == (25, 9)
    assert state.updated_at == "2024-01-02T00:00:00.000+00:00"
    assert repo._conn.execute("SELECT COUNT(*) FROM plan_state").fetchone()[0] == 1


# ------------------------------------------------------------------
# Audit log
# ------------------------------------------------------------------

def test_audit_entries_newest_first(repo):
    r1 = repo.add_audit_entry("first")
    r2 = repo.add_audit_entry("second")
    assert r2 == r1 + 1

    entries = repo.list_audit_entries()
    assert [(rev, msg) for rev, _, msg in entries] == [(r2, "second"), (r1, "first")]
    assert all(created for _, created, _ in entries)


def test_audit_entries_limit(repo):
    for i in range(5):
        repo.add_audit_entry(f"m{i}")
    assert [m for _, _, m in repo.list_audit_entries(limit=2)] == ["m4", "m3"]
