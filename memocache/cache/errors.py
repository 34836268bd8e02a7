"""Cache error types.

Only key validation and backend failures are surfaced to callers; everything
else (size estimation, malformed persisted entries) is absorbed by the manager.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for cache errors."""


class InvalidKeyError(CacheError, TypeError):
    """Raw key is neither a string nor a string-keyed mapping."""

    def __init__(self, key: object, reason: str | None = None) -> None:
        detail = reason or (
            f"Key must be a str or a Mapping[str, ...], got {type(key).__name__}"
        )
        super().__init__(detail)
        self.key_type = type(key).__name__


class StorageBackendError(CacheError):
    """A storage backend operation failed."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
