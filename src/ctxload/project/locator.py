"""Project root locator: marker directories, settings, and project lineage."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import NamedTuple

from ctxload.errors import LoadIOError, SettingsCorruptError
from ctxload.workspace import PRODUCTION, SETTINGS_FILE_NAME, marker_name_for

logger = logging.getLogger(__name__)


class ProjectRef(NamedTuple):
    """A directory that is itself a project root, paired with its project id."""

    path: Path
    project_id: str


def locate(start_dir: Path, env: str = PRODUCTION) -> Path | None:
    """Return the marker directory directly inside *start_dir*, or None.

    Does not search upward.
    """
    marker = Path(start_dir) / marker_name_for(env)
    return marker if marker.exists() else None


def ensure_exists(cwd: Path, env: str = PRODUCTION) -> tuple[Path, bool]:
    """Return ``(marker_dir, created)`` for *cwd*, creating the marker if missing.

    Raises:
        LoadIOError: The marker directory could not be created.
    """
    existing = locate(cwd, env)
    if existing is not None:
        return existing, False

    marker = Path(cwd) / marker_name_for(env)
    try:
        marker.mkdir()
    except OSError as exc:
        raise LoadIOError(f"Cannot create project directory '{marker}': {exc}") from exc
    logger.info("Created project directory %s", marker)
    return marker, True


def write_settings(marker_dir: Path, project_id: str) -> Path:
    """Write ``project.json`` holding *project_id* into *marker_dir*."""
    path = marker_dir / SETTINGS_FILE_NAME
    try:
        path.write_text(json.dumps({"id": project_id}, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise LoadIOError(f"Cannot write project settings '{path}': {exc}") from exc
    return path


def read_project_id(marker_dir: Path) -> str | None:
    """Return the project id stored in *marker_dir*, or None if there is no settings file.

    Raises:
        SettingsCorruptError: The settings file exists but is not valid.
        LoadIOError: The settings file exists but cannot be read.
    """
    path = marker_dir / SETTINGS_FILE_NAME
    if not path.exists():
        return None
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LoadIOError(f"Error reading project settings '{path}': {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SettingsCorruptError(f"Error parsing project settings '{path}': {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("id"), str) or not data["id"]:
        raise SettingsCorruptError(f"Project settings '{path}' has no string 'id' field")
    return data["id"]


def _project_at(directory: Path, env: str) -> ProjectRef | None:
    marker = locate(directory, env)
    if marker is None:
        return None
    project_id = read_project_id(marker)
    if project_id is None:
        return None
    return ProjectRef(directory, project_id)


def ancestors(cwd: Path, env: str = PRODUCTION) -> list[ProjectRef]:
    """Projects rooted in the parents of *cwd*, immediate parent first.

    The filesystem root itself is not checked. A corrupt settings file is
    never skipped: SettingsCorruptError propagates to the caller.
    """
    found: list[ProjectRef] = []
    current = Path(cwd).parent
    while current != current.parent:
        ref = _project_at(current, env)
        if ref is not None:
            found.append(ref)
        current = current.parent
    return found


def descendants(
    cwd: Path,
    env: str = PRODUCTION,
    timeout: float | None = None,
) -> list[ProjectRef]:
    """Projects rooted below *cwd*, depth-first, hidden entries pruned.

    When *timeout* seconds elapse the walk stops and whatever was found so
    far is returned. Permission errors prune the offending subtree; any other
    walk error raises LoadIOError.
    """
    root = Path(cwd)
    deadline = None if timeout is None else time.monotonic() + timeout
    found: list[ProjectRef] = []

    def _on_error(exc: OSError) -> None:
        if isinstance(exc, PermissionError):
            logger.debug("Skipping unreadable directory %s", exc.filename)
            return
        raise LoadIOError(f"Error walking the path {root}: {exc}") from exc

    for dirpath, dirnames, _filenames in os.walk(root, topdown=True, onerror=_on_error):
        if deadline is not None and time.monotonic() >= deadline:
            logger.info("Descendant project search in %s timed out; returning partial results", root)
            break

        # depth-first: os.walk descends in list order, so sort for stable output
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))

        current = Path(dirpath)
        if current == root:
            continue
        try:
            ref = _project_at(current, env)
        except PermissionError:
            continue
        except LoadIOError as exc:
            if isinstance(exc.__cause__, PermissionError):
                continue
            raise
        if ref is not None:
            found.append(ref)

    return found
