"""Domain models for loaded context."""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ContextKind(str, Enum):
    NOTE = "note"
    PIPED_DATA = "piped"
    FILE = "file"
    URL = "url"
    DIRECTORY_TREE = "directory tree"


# Kinds that can later be refreshed from their live source.
UPDATABLE_KINDS = frozenset({ContextKind.FILE, ContextKind.DIRECTORY_TREE, ContextKind.URL})


def now_ts() -> str:
    """UTC timestamp string used for created/updated fields."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def content_hash(body: str) -> str:
    """SHA-256 hex digest of *body* encoded as UTF-8."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ContextUnit:
    """One loaded item. ``content_hash`` and ``token_count`` are fixed at creation."""

    kind: ContextKind
    name: str
    body: str
    content_hash: str
    token_count: int
    source_path: str | None = None
    source_url: str | None = None
    created_at: str = ""
    updated_at: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        kind: ContextKind,
        name: str,
        body: str,
        token_count: int,
        *,
        source_path: str | None = None,
        source_url: str | None = None,
    ) -> "ContextUnit":
        ts = now_ts()
        return cls(
            kind=kind,
            name=name,
            body=body,
            content_hash=content_hash(body),
            token_count=token_count,
            source_path=source_path,
            source_url=source_url,
            created_at=ts,
            updated_at=ts,
        )

    @property
    def updatable(self) -> bool:
        return self.kind in UPDATABLE_KINDS


@dataclass
class PlanState:
    """Aggregate token counters. ``context_tokens >= context_updatable_tokens >= 0``."""

    context_tokens: int = 0
    context_updatable_tokens: int = 0
    updated_at: str | None = None
