"""Cooperative cancellation signal shared by a run and its long-running calls."""

from __future__ import annotations

import threading

from src.sql_deployment.errors import ExecutionCancelledError


class CancellationToken:
    """
    Thread-safe, one-way cancellation flag.

    The runner checks it at every step boundary; steps and collaborators with
    long-running calls poll it between calls.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ExecutionCancelledError if cancellation has been requested."""
        if self._event.is_set():
            raise ExecutionCancelledError("Deployment run was cancelled.")
