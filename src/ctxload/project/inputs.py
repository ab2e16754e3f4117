"""Flatten file/directory arguments into the list of paths to load.

Directory arguments are expanded against the project's path set, so the
ignore file and git's exclude rules both apply to what a directory yields.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ctxload.errors import LoadIOError
from ctxload.project.base_dir import resolve_base_dir
from ctxload.project.ignore import compile_ignore
from ctxload.project.paths import ALWAYS_PRUNED, ProjectPathSet, get_paths

logger = logging.getLogger(__name__)


def _project_rel(path: str, cwd: Path, project_root: Path) -> str:
    absolute = os.path.normpath(os.path.join(cwd, path))
    return os.path.relpath(absolute, project_root)


def flatten_input_paths(
    inputs: list[str],
    cwd: Path,
    project_root: Path,
    *,
    recursive: bool = False,
    names_only: bool = False,
    path_set: ProjectPathSet | None = None,
) -> list[str]:
    """Expand *inputs* (relative to *cwd*) into a sorted, de-duplicated path list.

    Files given directly are kept unless the ignore file excludes them or a
    directory above them.
    Directories require *recursive* or *names_only*; their entries must be
    members of the project path set. In *names_only* mode directories are
    listed alongside files.

    Args:
        inputs: Paths as typed by the user.
        cwd: Directory the inputs are relative to.
        project_root: Root holding the ignore file.
        recursive: Expand directories into their files.
        names_only: List directory entries instead of loading contents.
        path_set: Pre-computed project paths (computed here when None).

    Raises:
        LoadIOError: An input does not exist, or is a directory without
            *recursive*/*names_only*.
    """
    cwd = Path(cwd)
    project_root = Path(project_root)
    rel_inputs = [_project_rel(p, cwd, project_root) for p in inputs]

    for raw in inputs:
        if not (cwd / raw).exists():
            raise LoadIOError(f"No such file or directory: '{raw}'")

    matcher = path_set.matcher if path_set is not None else compile_ignore(project_root)

    result: set[str] = set()
    for raw, rel in zip(inputs, rel_inputs):
        target = cwd / raw
        if not target.is_dir():
            if matcher is not None and matcher.excludes(rel):
                logger.debug("Skipping ignored input %s", raw)
                continue
            result.add(os.path.normpath(raw))
            continue

        if not (recursive or names_only):
            raise LoadIOError(
                f"Cannot process directory '{raw}': pass --recursive or --tree"
            )
        if path_set is None:
            path_set = get_paths(resolve_base_dir(rel_inputs, project_root), project_root)
        result.update(_expand_dir(raw, cwd, project_root, path_set, names_only))

    return sorted(result)


def _expand_dir(
    raw: str,
    cwd: Path,
    project_root: Path,
    path_set: ProjectPathSet,
    names_only: bool,
) -> list[str]:
    found: list[str] = []
    root = os.path.normpath(raw)

    def _on_error(exc: OSError) -> None:
        raise LoadIOError(f"Error walking directory '{raw}': {exc}") from exc

    if names_only:
        found.append(root)

    for dirpath, dirnames, filenames in os.walk(cwd / root, topdown=True, onerror=_on_error):
        rel_dir = os.path.relpath(dirpath, cwd)
        kept: list[str] = []
        for name in sorted(dirnames):
            if name in ALWAYS_PRUNED:
                continue
            display = os.path.normpath(os.path.join(rel_dir, name))
            if _project_rel(display, cwd, project_root) not in path_set:
                continue
            kept.append(name)
            if names_only:
                found.append(display)
        dirnames[:] = kept

        for name in sorted(filenames):
            display = os.path.normpath(os.path.join(rel_dir, name))
            if _project_rel(display, cwd, project_root) not in path_set:
                continue
            found.append(display)

    return found
