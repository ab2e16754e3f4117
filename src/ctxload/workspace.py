"""Filesystem locations for one ctxload invocation.

A Workspace is built once (usually by the CLI) and handed to every component
that needs the working directory, project root, or home/cache paths.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from ctxload.errors import LoadIOError, ProjectNotFoundError

ENV_VAR = "CTXLOAD_ENV"
DEVELOPMENT = "development"
PRODUCTION = "production"

MARKER_NAME = ".ctxload"
DEV_MARKER_NAME = ".ctxload-dev"
HOME_DIR_NAME = ".ctxload-home"
DEV_HOME_DIR_NAME = ".ctxload-home-dev"

IGNORE_FILE_NAME = ".ctxloadignore"
SETTINGS_FILE_NAME = "project.json"
DB_FILE_NAME = "context.db"


def marker_name_for(env: str) -> str:
    """Marker directory name for *env* ("development" selects the dev variant)."""
    return DEV_MARKER_NAME if env == DEVELOPMENT else MARKER_NAME


@dataclass(frozen=True)
class Workspace:
    """Resolved locations: cwd, home, cache, and (if found) the project root."""

    cwd: Path
    env: str
    home_dir: Path
    marker_dir: Path | None = None
    project_root: Path | None = None

    @classmethod
    def discover(
        cls,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        home: Path | None = None,
    ) -> "Workspace":
        """Resolve locations without creating anything on disk."""
        environ = os.environ if env is None else env
        mode = DEVELOPMENT if environ.get(ENV_VAR) == DEVELOPMENT else PRODUCTION
        cwd = (cwd or Path.cwd()).resolve()
        home = home or Path.home()
        home_dir = home / (DEV_HOME_DIR_NAME if mode == DEVELOPMENT else HOME_DIR_NAME)

        ws = cls(cwd=cwd, env=mode, home_dir=home_dir)
        marker = cwd / ws.marker_name
        if marker.is_dir():
            ws = replace(ws, marker_dir=marker, project_root=cwd)
        return ws

    @property
    def marker_name(self) -> str:
        return marker_name_for(self.env)

    @property
    def cache_dir(self) -> Path:
        return self.home_dir / "cache"

    @property
    def global_config_path(self) -> Path:
        return self.home_dir / "config.yaml"

    @property
    def db_path(self) -> Path:
        if self.marker_dir is None:
            raise self._not_found()
        return self.marker_dir / DB_FILE_NAME

    @property
    def root(self) -> Path:
        """The project root; raises ProjectNotFoundError outside a project."""
        if self.project_root is None:
            raise self._not_found()
        return self.project_root

    def require_project(self) -> "Workspace":
        """Return self, or raise ProjectNotFoundError if no marker directory exists."""
        if self.marker_dir is None or self.project_root is None:
            raise self._not_found()
        return self

    def _not_found(self) -> ProjectNotFoundError:
        return ProjectNotFoundError(
            f"No {self.marker_name} directory found in '{self.cwd}'. Run: ctxload init"
        )

    def with_project(self, marker_dir: Path) -> "Workspace":
        """Return a copy rooted at the project owning *marker_dir*."""
        return replace(self, marker_dir=marker_dir, project_root=marker_dir.parent)


def ensure_home(ws: Workspace) -> Path:
    """Create home + tokenizer cache directories and export TIKTOKEN_CACHE_DIR."""
    tiktoken_dir = ws.cache_dir / "tiktoken"
    try:
        tiktoken_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LoadIOError(f"Cannot create cache directory '{tiktoken_dir}': {exc}") from exc
    os.environ["TIKTOKEN_CACHE_DIR"] = str(tiktoken_dir)
    return ws.home_dir
