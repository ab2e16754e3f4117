"""Path enumerator: the set of project-relevant paths below a base directory.

For a git working tree three producers run concurrently:

  - ``git ls-files``                               tracked files
  - ``git ls-files --others --exclude-standard``   untracked, not git-ignored
  - a raw directory walk                           directories only

Every producer relativizes its paths to *current_dir* and applies the
.ctxloadignore matcher on its own; results are merged after all three finish.
A git-listed file below an ignored directory is dropped, as the walk would
never reach it.
Outside git, the walk alone collects files and directories.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from ctxload.errors import LoadIOError
from ctxload.project.ignore import IgnoreMatcher, compile_ignore
from ctxload.tasks import TaskGroup
from ctxload.workspace import DEV_MARKER_NAME, MARKER_NAME

logger = logging.getLogger(__name__)

# Directories the walk never descends into.
ALWAYS_PRUNED = frozenset({".git", MARKER_NAME, DEV_MARKER_NAME})


@dataclass
class ProjectPathSet:
    """Relative path → is-directory, plus the matcher that produced it.

    ``ignored`` keeps every path diverted by the matcher, for diagnostics.
    """

    paths: dict[str, bool] = field(default_factory=dict)
    ignored: set[str] = field(default_factory=set)
    matcher: IgnoreMatcher | None = None

    def __contains__(self, rel_path: object) -> bool:
        return rel_path in self.paths

    def __len__(self) -> int:
        return len(self.paths)

    def files(self) -> list[str]:
        return sorted(p for p, is_dir in self.paths.items() if not is_dir)

    def directories(self) -> list[str]:
        return sorted(p for p, is_dir in self.paths.items() if is_dir)


@dataclass
class _Listing:
    """One producer's local result."""

    accepted: dict[str, bool] = field(default_factory=dict)
    ignored: set[str] = field(default_factory=set)


def is_git_repo(directory: Path) -> bool:
    """True if *directory* is inside a git working tree (and git is installed)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=directory,
            shell=False,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, NotADirectoryError):
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def get_paths(base_dir: Path, current_dir: Path) -> ProjectPathSet:
    """Enumerate project paths under *base_dir*, keyed relative to *current_dir*.

    The ignore file is read from *current_dir*. Any producer failure aborts
    the call; partial results are discarded.

    Raises:
        LoadIOError: A git command, relativization, or the walk failed.
        ConfigError: The ignore file is malformed.
    """
    base_dir = Path(base_dir)
    current_dir = Path(current_dir)
    matcher = compile_ignore(current_dir)

    if is_git_repo(base_dir):
        with TaskGroup(name="ctxload-paths") as group:
            tracked = group.spawn(
                _git_listing, base_dir, current_dir, matcher, ["ls-files"], "files in git repo"
            )
            untracked = group.spawn(
                _git_listing,
                base_dir,
                current_dir,
                matcher,
                ["ls-files", "--others", "--exclude-standard"],
                "untracked files in git repo",
            )
            walked = group.spawn(_walk, base_dir, current_dir, matcher, False)
        listings = [tracked.result(), untracked.result(), walked.result()]
    else:
        listings = [_walk(base_dir, current_dir, matcher, True)]

    result = ProjectPathSet(matcher=matcher)
    for listing in listings:
        result.paths.update(listing.accepted)
        result.ignored.update(listing.ignored)

    logger.debug(
        "Enumerated %d paths under %s (%d ignored)",
        len(result.paths),
        base_dir,
        len(result.ignored),
    )
    return result


def get_project_paths(project_root: Path, base_dir: Path | None = None) -> ProjectPathSet:
    """Paths under *base_dir* (default: the project root), relative to the project root."""
    return get_paths(base_dir or project_root, project_root)


# ------------------------------------------------------------------
# Producers
# ------------------------------------------------------------------


def _relativize(path: str, current_dir: Path) -> str:
    try:
        return os.path.relpath(path, current_dir)
    except ValueError as exc:
        raise LoadIOError(f"Error getting relative path for '{path}': {exc}") from exc


def _git_listing(
    base_dir: Path,
    current_dir: Path,
    matcher: IgnoreMatcher | None,
    args: list[str],
    what: str,
) -> _Listing:
    # Raw bytes: git prints names as stored, which need not be valid UTF-8.
    try:
        proc = subprocess.run(
            ["git", *args, "-z"],
            cwd=base_dir,
            shell=False,
            capture_output=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        stderr = (getattr(exc, "stderr", None) or b"").decode("utf-8", errors="replace")
        raise LoadIOError(f"Error getting {what} ({base_dir}): {exc} {stderr}".rstrip()) from exc

    listing = _Listing()
    for raw_entry in proc.stdout.split(b"\0"):
        # fsdecode names the file the same way os.walk does.
        entry = os.fsdecode(raw_entry)
        if not entry or ALWAYS_PRUNED.intersection(entry.split("/")):
            continue
        rel = _relativize(os.path.join(base_dir, entry), current_dir)
        if matcher is not None and matcher.excludes(rel):
            listing.ignored.add(rel)
            continue
        listing.accepted[rel] = False
    return listing


def _walk(
    base_dir: Path,
    current_dir: Path,
    matcher: IgnoreMatcher | None,
    include_files: bool,
) -> _Listing:
    listing = _Listing()

    def _on_error(exc: OSError) -> None:
        raise LoadIOError(f"Error walking directory '{exc.filename}': {exc}") from exc

    for dirpath, dirnames, filenames in os.walk(base_dir, topdown=True, onerror=_on_error):
        kept: list[str] = []
        for name in dirnames:
            if name in ALWAYS_PRUNED:
                continue
            rel = _relativize(os.path.join(dirpath, name), current_dir)
            if matcher is not None and matcher.matches(rel, is_dir=True):
                listing.ignored.add(rel)
                continue
            listing.accepted[rel] = True
            kept.append(name)
        dirnames[:] = kept

        if not include_files:
            continue
        for name in filenames:
            rel = _relativize(os.path.join(dirpath, name), current_dir)
            if matcher is not None and matcher.matches(rel):
                listing.ignored.add(rel)
                continue
            listing.accepted[rel] = False

    return listing
