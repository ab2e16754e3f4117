"""Shared pytest fixtures."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from ctxload.context.collaborators import Collaborators
from ctxload.db.connection import Database
from ctxload.workspace import Workspace


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    conn = Database(tmp_path / "context.db", migrate=True).connect()
    yield conn
    conn.close()


@pytest.fixture
def project(tmp_path) -> Path:
    """A project root (tmp_path/proj) with a .ctxload marker directory."""
    root = tmp_path / "proj"
    (root / ".ctxload").mkdir(parents=True)
    return root


@pytest.fixture
def workspace(project, tmp_path) -> Workspace:
    """Workspace rooted at the ``project`` fixture, with a private home dir."""
    return Workspace.discover(cwd=project, env={}, home=tmp_path / "home")


def _word_count(text: str) -> int:
    return len(text.split())


@pytest.fixture
def fake_collaborators() -> Collaborators:
    """Collaborators that never touch the network or an LLM."""
    pages: dict[str, str] = {}

    def _fetch(url: str) -> str:
        return pages.get(url, f"content of {url}")

    collab = Collaborators(
        count_tokens=_word_count,
        fetch_url=_fetch,
        derive_file_name=lambda text: "-".join(text.split()[:2]).lower() or "empty",
    )
    collab.pages = pages  # type: ignore[attr-defined]
    return collab


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True)


@pytest.fixture
def make_git_repo():
    """Factory: initialise a directory as a git repo with a committer identity."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    def _make(root: Path) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        subprocess.run(["git", "init", "-q", str(root)], check=True, capture_output=True)
        _git(root, "config", "user.email", "test@test.com")
        _git(root, "config", "user.name", "Test")
        return root

    return _make


@pytest.fixture
def cli_cwd(tmp_path, monkeypatch) -> Path:
    """Run CLI commands from tmp_path/work with HOME redirected to tmp_path/home."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("TIKTOKEN_CACHE_DIR", str(home / "unused"))
    for name in ("CTXLOAD_ENV", "CTXLOAD_MAX_TOKENS", "CTXLOAD_TOKENIZER_MODEL", "CTXLOAD_NAMING_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(work)
    return work
