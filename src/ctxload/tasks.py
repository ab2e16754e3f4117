"""Scoped thread fan-out with first-error collection and cooperative cancellation.

Usage::

    with TaskGroup() as group:
        for item in items:
            group.spawn(work, group, item)
    results = group.results()

Leaving the ``with`` block waits for every spawned task. If any task raises,
the group's cancel event is set, tasks that have not started are cancelled,
running tasks see ``check_cancelled()`` raise at their next suspension point,
and the first real error is re-raised once everything has stopped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Cancelled(Exception):
    """Raised inside a task when a sibling has already failed."""


class TaskGroup:
    """One executor per group; torn down when the group exits."""

    def __init__(self, max_workers: int | None = None, name: str = "ctxload") -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._futures: list[Future] = []
        self._cancel = threading.Event()
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def check_cancelled(self) -> None:
        """Raise Cancelled if the group has been cancelled."""
        if self._cancel.is_set():
            raise Cancelled()

    def spawn(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            if self._cancel.is_set():
                raise Cancelled()
            future = self._executor.submit(fn, *args, **kwargs)
            self._futures.append(future)
        return future

    def join(self) -> None:
        """Wait for all tasks; raise the first non-cancellation error."""
        pending: set[Future] = set(self._futures)
        first_error: BaseException | None = None

        while pending:
            done, pending = wait(pending, return_when=FIRST_EXCEPTION)
            for future in done:
                if future.cancelled():
                    continue
                exc = future.exception()
                if exc is None or isinstance(exc, Cancelled):
                    continue
                if first_error is None:
                    first_error = exc
                    self._cancel.set()
                    for other in pending:
                        other.cancel()

        if first_error is not None:
            logger.debug("Task group aborted: %s", first_error)
            raise first_error

    def results(self) -> list[Any]:
        """Return results of completed tasks, in spawn order."""
        return [f.result() for f in self._futures if not f.cancelled()]

    def __enter__(self) -> "TaskGroup":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc is not None:
                self._cancel.set()
                for future in self._futures:
                    future.cancel()
                wait(self._futures)
            else:
                self.join()
        finally:
            self._executor.shutdown(wait=True)
