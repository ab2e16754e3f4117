"""Ignore matcher: compiles a directory's .ctxloadignore into a predicate.

Pattern semantics are gitignore's (glob segments, ``!`` negation, trailing
``/`` for directory-only patterns), provided by ``pathspec``.
"""

from __future__ import annotations

from pathlib import Path

import pathspec

from ctxload.errors import ConfigError, LoadIOError
from ctxload.workspace import IGNORE_FILE_NAME


class IgnoreMatcher:
    """Compiled ignore patterns for paths relative to the ignore file's directory."""

    def __init__(self, spec: pathspec.PathSpec, source: Path | None = None) -> None:
        self._spec = spec
        self.source = source

    @classmethod
    def from_lines(cls, lines: list[str], source: Path | None = None) -> "IgnoreMatcher":
        try:
            spec = pathspec.GitIgnoreSpec.from_lines(lines)
        except (ValueError, TypeError) as exc:
            where = f"'{source}'" if source else "ignore patterns"
            raise ConfigError(f"Error reading {where}: {exc}") from exc
        return cls(spec, source)

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """True if *rel_path* is excluded.

        Directory-only patterns (``build/``) need *is_dir* to match the
        directory entry itself; descendants match either way.
        """
        candidate = rel_path.replace("\\", "/")
        if candidate in ("", "."):
            return False
        if is_dir and not candidate.endswith("/"):
            candidate += "/"
        return self._spec.match_file(candidate)

    def excludes(self, rel_path: str, is_dir: bool = False) -> bool:
        """True if *rel_path* or any directory above it is excluded.

        A file cannot be re-included (``!pattern``) once a parent directory is
        excluded, as in git. Leading ``..`` segments are not tested on their own.
        """
        parts = [p for p in rel_path.replace("\\", "/").split("/") if p not in ("", ".")]
        start = 0
        while start < len(parts) and parts[start] == "..":
            start += 1
        for end in range(start + 1, len(parts)):
            if self.matches("/".join(parts[:end]), is_dir=True):
                return True
        return self.matches(rel_path, is_dir=is_dir)


def compile_ignore(directory: Path) -> IgnoreMatcher | None:
    """Compile ``directory/.ctxloadignore``; None when the file does not exist.

    Raises:
        ConfigError: The file exists but contains an invalid pattern.
        LoadIOError: The file exists but cannot be read.
    """
    ignore_path = Path(directory) / IGNORE_FILE_NAME
    if not ignore_path.exists():
        return None
    try:
        text = ignore_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Error reading '{ignore_path}': {exc}") from exc
    except OSError as exc:
        raise LoadIOError(f"Error reading '{ignore_path}': {exc}") from exc
    return IgnoreMatcher.from_lines(text.splitlines(), source=ignore_path)
