"""Base-directory resolution for project-relative paths that climb above the root."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable


def leading_parent_segments(path: str) -> int:
    """Number of consecutive ``..`` segments at the start of *path*."""
    count = 0
    for segment in path.replace(os.sep, "/").split("/"):
        if segment != "..":
            break
        count += 1
    return count


def resolve_base_dir(paths: Iterable[str], project_root: Path) -> Path:
    """Smallest ancestor of *project_root* from which every path in *paths* resolves.

    Returns *project_root* itself when no path starts with ``..``.
    """
    project_root = Path(project_root)
    climb = max((leading_parent_segments(p) for p in paths), default=0)
    base = project_root
    for _ in range(climb):
        base = base.parent
    return base

