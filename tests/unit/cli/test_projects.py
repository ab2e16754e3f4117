"""Tests for the ctxload projects command."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from ctxload.cli.main import app
from ctxload.project.locator import write_settings

runner = CliRunner()


def _make_project(directory: Path, project_id: str) -> None:
    marker = directory / ".ctxload"
    marker.mkdir(parents=True)
    write_settings(marker, project_id)


def test_projects_none_found(cli_cwd: Path) -> None:
    result = runner.invoke(app, ["projects"])
    assert result.exit_code == 0, result.output
    assert "No parent or child projects found." in result.output


def test_projects_lists_parents_and_children(cli_cwd: Path, tmp_path: Path) -> None:
    _make_project(tmp_path, "parent-id")
    _make_project(cli_cwd / "child", "child-id")

    result = runner.invoke(app, ["projects"])

    assert result.exit_code == 0, result.output
    assert "Parent projects" in result.output
    assert "parent-id" in result.output
    assert "Child projects" in result.output
    assert "child-id" in result.output


def test_projects_zero_timeout_skips_children(cli_cwd: Path) -> None:
    _make_project(cli_cwd / "child", "child-id")

    result = runner.invoke(app, ["projects", "--timeout", "0"])

    assert result.exit_code == 0, result.output
    assert "child-id" not in result.output


def test_projects_corrupt_parent_settings(cli_cwd: Path, tmp_path: Path) -> None:
    (tmp_path / ".ctxload").mkdir()
    (tmp_path / ".ctxload" / "project.json").write_text("nope", encoding="utf-8")

    result = runner.invoke(app, ["projects"])

    assert result.exit_code == 1
    assert "Config error" in result.output
