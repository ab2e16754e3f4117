"""Project discovery: marker directories, lineage, ignore rules, and path enumeration."""

from ctxload.project.base_dir import resolve_base_dir
from ctxload.project.ignore import IgnoreMatcher, compile_ignore
from ctxload.project.inputs import flatten_input_paths
from ctxload.project.locator import ProjectRef, ancestors, descendants, ensure_exists, locate
from ctxload.project.paths import ProjectPathSet, get_paths, get_project_paths, is_git_repo

__all__ = [
    "IgnoreMatcher",
    "ProjectPathSet",
    "ProjectRef",
    "ancestors",
    "compile_ignore",
    "descendants",
    "ensure_exists",
    "flatten_input_paths",
    "get_paths",
    "get_project_paths",
    "is_git_repo",
    "locate",
    "resolve_base_dir",
]
