"""Exception hierarchy for ctxload.

Library code raises these; only the CLI layer turns them into exit codes.
"""

from __future__ import annotations


class CtxloadError(Exception):
    """Base class for every error raised by ctxload."""


class LoadIOError(CtxloadError):
    """A file, subprocess, or network operation failed.

    The message always names the path, URL, or command involved; the
    underlying exception is chained via ``raise ... from``.
    """


class ConfigError(CtxloadError, ValueError):
    """A config, ignore, or settings file contains an invalid value."""


class SettingsCorruptError(ConfigError):
    """A project settings file exists but cannot be parsed."""


class ProjectNotFoundError(CtxloadError):
    """No marker directory exists for the working directory."""


class NoContextError(CtxloadError):
    """The ingestion call produced no context units."""

    def __init__(self, message: str = "No context loaded") -> None:
        super().__init__(message)


class BudgetExceededError(CtxloadError):
    """The running token total crossed the configured ceiling.

    Attributes:
        attempted: Running total after the offending unit was counted.
        maximum: The configured ceiling.
        tokens_added: Tokens counted in this batch before the abort.
        updatable_tokens: Updatable sub-total after the offending unit.
        unit_name: Display name of the unit that crossed the ceiling.
    """

    def __init__(
        self,
        attempted: int,
        maximum: int,
        tokens_added: int = 0,
        updatable_tokens: int = 0,
        unit_name: str = "",
    ) -> None:
        self.attempted = attempted
        self.maximum = maximum
        self.tokens_added = tokens_added
        self.updatable_tokens = updatable_tokens
        self.unit_name = unit_name
        super().__init__(
            f"The total number of tokens ({attempted}) exceeds the maximum allowed ({maximum})"
        )


class PersistenceError(CtxloadError):
    """Preparing the store, or writing context units and/or plan state, failed.

    Any field may be set; a write that succeeded is not rolled back. When
    *store_error* is set neither write was attempted.
    """

    def __init__(
        self,
        context_error: BaseException | None = None,
        state_error: BaseException | None = None,
        store_error: BaseException | None = None,
    ) -> None:
        self.context_error = context_error
        self.state_error = state_error
        self.store_error = store_error
        parts = []
        if store_error is not None:
            parts.append(f"context store: {store_error}")
        if context_error is not None:
            parts.append(f"context units: {context_error}")
        if state_error is not None:
            parts.append(f"plan state: {state_error}")
        super().__init__("Failed to write " + "; ".join(parts))


class AuditLogError(CtxloadError):
    """Context was persisted but the audit entry could not be recorded."""
