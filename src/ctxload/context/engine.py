"""Context ingestion engine: fans out one worker per source, fans in under a token budget.

Sources:
  note / piped stdin           → one worker each
  http(s) URL                  → one worker per URL (fetch + convert)
  path, --tree (names only)    → one worker per argument (directory listing)
  path, full content           → arguments flattened once, one worker per file

Every worker counts its tokens and charges them to the shared IngestionBudget
before packaging its unit. The first failure (including a budget breach)
cancels the remaining workers and is raised to the caller; nothing is
persisted in that case.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from ctxload.config import CtxloadConfig
from ctxload.context.budget import IngestionBudget
from ctxload.context.collaborators import Collaborators
from ctxload.context.models import ContextKind, ContextUnit, PlanState
from ctxload.context.persist import PersistenceCoordinator
from ctxload.context.summary import audit_message, load_message
from ctxload.context.web import shorten
from ctxload.errors import LoadIOError, NoContextError
from ctxload.project.inputs import flatten_input_paths
from ctxload.tasks import TaskGroup
from ctxload.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class LoadParams:
    """Per-call options.

    Attributes:
        note: Free-text note to load, if any.
        piped_data: Content read from a stdin pipe, if any.
        recursive: Expand directory arguments into their files.
        names_only: Load directory arguments as path listings (``--tree``).
        max_tokens: Override for ``context.max_tokens``.
    """

    note: str = ""
    piped_data: str | None = None
    recursive: bool = False
    names_only: bool = False
    max_tokens: int | None = None


@dataclass
class LoadResult:
    units: list[ContextUnit]
    tokens_added: int
    total_tokens: int
    updatable_tokens: int
    message: str = ""
    revision: int | None = None
    paths: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)


def tree_display_name(path: str) -> str:
    """Display name for a directory-tree unit: 'cwd' for '.', 'parent' for '..'."""
    normalized = os.path.normpath(path)
    if normalized == ".":
        return "cwd"
    if normalized == "..":
        return "parent"
    return path


class ContextLoader:
    """Loads resources into the context store of the project in *ws*."""

    def __init__(
        self,
        ws: Workspace,
        cfg: CtxloadConfig | None = None,
        collaborators: Collaborators | None = None,
        coordinator: PersistenceCoordinator | None = None,
    ) -> None:
        self.ws = ws.require_project()
        self.cfg = cfg or CtxloadConfig()
        self.collab = collaborators or Collaborators.from_config(self.cfg)
        self.coordinator = coordinator or PersistenceCoordinator(self.ws.db_path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest(self, resources: list[str], params: LoadParams) -> LoadResult:
        """Run every worker and return the units with updated totals (nothing persisted).

        Raises:
            BudgetExceededError: The running total crossed the ceiling.
            NoContextError: No note, piped data, or resource produced a unit.
            LoadIOError: The context store, a file, the directory walk, a git
                command, or a fetch failed.
        """
        state = self.coordinator.read_plan_state()
        max_tokens = params.max_tokens or self.cfg.context.max_tokens
        budget = IngestionBudget(
            max_tokens, state.context_tokens, state.context_updatable_tokens
        )

        urls = [r for r in resources if self.collab.is_url(r)]
        paths = [r for r in resources if not self.collab.is_url(r)]

        # Full-content mode expands all path arguments together, once.
        files: list[str] = []
        if paths and not params.names_only:
            files = self._flatten(paths, recursive=params.recursive, names_only=False)

        with TaskGroup(name="ctxload-load") as group:
            if params.note:
                group.spawn(self._text_worker, group, budget, ContextKind.NOTE, params.note)
            if params.piped_data:
                group.spawn(
                    self._text_worker, group, budget, ContextKind.PIPED_DATA, params.piped_data
                )
            if params.names_only:
                for path in paths:
                    group.spawn(self._tree_worker, group, budget, path, params.recursive)
            for path in files:
                group.spawn(self._file_worker, group, budget, path)
            for url in urls:
                group.spawn(self._url_worker, group, budget, url)

        units: list[ContextUnit] = group.results()
        if not units:
            raise NoContextError()

        message = load_message(
            note=bool(params.note),
            piped=bool(params.piped_data),
            num_paths=len(paths),
            names_only=params.names_only,
            num_urls=len(urls),
            tokens_added=budget.tokens_added,
            total_tokens=budget.running_total,
        )
        logger.info("%s", message)
        return LoadResult(
            units=units,
            tokens_added=budget.tokens_added,
            total_tokens=budget.running_total,
            updatable_tokens=budget.updatable_total,
            message=message,
            paths=paths,
            urls=urls,
        )

    def load(self, resources: list[str], params: LoadParams) -> LoadResult:
        """ingest() then commit the batch and record the audit entry.

        Raises:
            PersistenceError: Units or counters could not be written.
            AuditLogError: Writes succeeded but the audit entry failed.
        """
        result = self.ingest(resources, params)
        totals = PlanState(
            context_tokens=result.total_tokens,
            context_updatable_tokens=result.updatable_tokens,
        )
        result.revision = self.coordinator.commit(
            result.units, totals, audit_message(result.message, result.units)
        )
        return result

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _text_worker(
        self, group: TaskGroup, budget: IngestionBudget, kind: ContextKind, body: str
    ) -> ContextUnit:
        group.check_cancelled()
        tokens = self.collab.count_tokens(body)
        label = "note" if kind is ContextKind.NOTE else "piped data"
        budget.charge(tokens, updatable=False, name=label)

        group.check_cancelled()
        name = self.collab.derive_file_name(body)
        return ContextUnit.create(kind, name, body, tokens)

    def _tree_worker(
        self, group: TaskGroup, budget: IngestionBudget, path: str, recursive: bool
    ) -> ContextUnit:
        group.check_cancelled()
        listing = self._flatten([path], recursive=recursive, names_only=True)
        body = "\n".join(listing)

        group.check_cancelled()
        tokens = self.collab.count_tokens(body)
        budget.charge(tokens, updatable=True, name=path)
        return ContextUnit.create(
            ContextKind.DIRECTORY_TREE,
            tree_display_name(path),
            body,
            tokens,
            source_path=path,
        )

    def _file_worker(self, group: TaskGroup, budget: IngestionBudget, path: str) -> ContextUnit:
        group.check_cancelled()
        try:
            raw = (self.ws.cwd / path).read_bytes()
        except OSError as exc:
            raise LoadIOError(f"Failed to read the file {path}: {exc}") from exc
        body = raw.decode("utf-8", errors="replace")

        group.check_cancelled()
        tokens = self.collab.count_tokens(body)
        budget.charge(tokens, updatable=True, name=path)
        return ContextUnit.create(ContextKind.FILE, path, body, tokens, source_path=path)

    def _url_worker(self, group: TaskGroup, budget: IngestionBudget, url: str) -> ContextUnit:
        group.check_cancelled()
        body = self.collab.fetch_url(url)

        group.check_cancelled()
        tokens = self.collab.count_tokens(body)
        name = shorten(self.collab.sanitize_url(url), self.cfg.context.url_name_length)
        budget.charge(tokens, updatable=True, name=name)
        return ContextUnit.create(ContextKind.URL, name, body, tokens, source_url=url)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _flatten(self, paths: list[str], *, recursive: bool, names_only: bool) -> list[str]:
        return flatten_input_paths(
            paths,
            self.ws.cwd,
            self.ws.root,
            recursive=recursive,
            names_only=names_only,
        )


def load_context(
    ws: Workspace,
    resources: list[str],
    params: LoadParams,
    cfg: CtxloadConfig | None = None,
    collaborators: Collaborators | None = None,
) -> LoadResult:
    """Convenience wrapper: ContextLoader(ws, cfg, collaborators).load(...)."""
    return ContextLoader(ws, cfg, collaborators).load(resources, params)
