"""Token budget shared by the workers of one ingestion call."""

from __future__ import annotations

import logging
import threading

from ctxload.errors import BudgetExceededError

logger = logging.getLogger(__name__)


class IngestionBudget:
    """Running token totals guarded by a single lock.

    ``charge()`` adds a unit's tokens and then checks the ceiling while still
    holding the lock. The offending unit stays counted: totals after a breach
    are the initial totals plus every unit charged up to and including it.
    Once breached, every later ``charge()`` raises without counting.
    """

    def __init__(self, max_tokens: int, initial_total: int = 0, initial_updatable: int = 0) -> None:
        self.max_tokens = max_tokens
        self.running_total = initial_total
        self.updatable_total = initial_updatable
        self.tokens_added = 0
        self._breach: BudgetExceededError | None = None
        self._lock = threading.Lock()

    @property
    def exceeded(self) -> bool:
        return self._breach is not None

    def charge(self, tokens: int, updatable: bool, name: str = "") -> None:
        """Count *tokens*; raise BudgetExceededError if the ceiling is crossed."""
        with self._lock:
            if self._breach is not None:
                b = self._breach
                raise BudgetExceededError(
                    b.attempted, b.maximum, b.tokens_added, b.updatable_tokens, b.unit_name
                )

            self.running_total += tokens
            self.tokens_added += tokens
            if updatable:
                self.updatable_total += tokens
            logger.debug(
                "Counted %d tokens for %s (total %d / %d)",
                tokens,
                name or "unit",
                self.running_total,
                self.max_tokens,
            )

            if self.running_total > self.max_tokens:
                self._breach = BudgetExceededError(
                    attempted=self.running_total,
                    maximum=self.max_tokens,
                    tokens_added=self.tokens_added,
                    updatable_tokens=self.updatable_total,
                    unit_name=name,
                )
                raise self._breach
