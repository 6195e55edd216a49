"""Cooperative cancellation shared by every stage of a run.

This module provides:
- CancellationToken: Thread-safe, one-way cancellation flag
- CancelledException: Raised when work observes a cancelled token
"""

from __future__ import annotations

import threading


class CancelledException(Exception):
    """Raised when an operation is cancelled."""


class CancellationToken:
    """A one-way cancellation signal threaded through hashing and uploads.

    Workers poll ``is_cancelled`` (or pass the bound method as a
    ``cancel_check`` callable) between units of work. Already-started
    network operations are not interrupted.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise CancelledException if cancellation was requested."""
        if self._event.is_set():
            raise CancelledException("Operation cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or timeout; returns the cancelled flag."""
        return self._event.wait(timeout)
