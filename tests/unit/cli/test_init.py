"""Tests for the ctxload init command."""

from __future__ import annotations

import json
import stat
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from ctxload.cli.main import app

runner = CliRunner()


def _project_id(work: Path, marker: str = ".ctxload") -> str:
    return json.loads((work / marker / "project.json").read_text(encoding="utf-8"))["id"]


def test_init_creates_marker_settings_and_db(cli_cwd: Path) -> None:
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    assert (cli_cwd / ".ctxload").is_dir()
    assert (cli_cwd / ".ctxload" / "context.db").exists()
    project_id = _project_id(cli_cwd)
    assert project_id in result.output
    assert "initialized" in result.output


def test_init_creates_global_config(cli_cwd: Path, tmp_path: Path) -> None:
    runner.invoke(app, ["init"])

    cfg = tmp_path / "home" / ".ctxload-home" / "config.yaml"
    assert cfg.exists()
    assert stat.S_IMODE(cfg.stat().st_mode) == 0o600
    assert (tmp_path / "home" / ".ctxload-home" / "cache" / "tiktoken").is_dir()


def test_init_twice_keeps_project_id(cli_cwd: Path) -> None:
    runner.invoke(app, ["init"])
    first = _project_id(cli_cwd)

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert _project_id(cli_cwd) == first


def test_init_development_env(cli_cwd: Path, monkeypatch) -> None:
    monkeypatch.setenv("CTXLOAD_ENV", "development")
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0, result.output
    assert (cli_cwd / ".ctxload-dev").is_dir()
    assert not (cli_cwd / ".ctxload").exists()
    assert _project_id(cli_cwd, ".ctxload-dev")


def test_init_corrupt_settings(cli_cwd: Path) -> None:
    (cli_cwd / ".ctxload").mkdir()
    (cli_cwd / ".ctxload" / "project.json").write_text("{broken", encoding="utf-8")

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 1
    assert "Config error" in result.output


def test_init_damaged_store(cli_cwd: Path) -> None:
    (cli_cwd / ".ctxload").mkdir()
    (cli_cwd / ".ctxload" / "context.db").write_bytes(b"this is not an sqlite database" * 64)

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Cannot open the context store" in " ".join(result.output.split())


def test_init_global_config_not_writable(cli_cwd: Path) -> None:
    with patch(
        "ctxload.cli.init.ensure_global_config", side_effect=PermissionError("Permission denied")
    ):
        result = runner.invoke(app, ["init"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Cannot write global config" in " ".join(result.output.split())


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("ctxload ")


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "ctxload" in result.output
