"""Shared exception types."""

from __future__ import annotations


class StorageError(RuntimeError):
    """Raised when a backing store (database, Redis) cannot serve a request.

    The original driver exception is chained as ``__cause__``. Callers decide
    whether to retry; nothing in this package retries storage failures.
    """
