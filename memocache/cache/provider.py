from __future__ import annotations

from datetime import timedelta
from threading import Lock

from memocache.config import settings

from .manager import CacheManager
from .memory_backend import MemoryStorageBackend

_provider_lock = Lock()
_managers: dict[str, CacheManager] = {}


def get_cache_manager(namespace: str = "default") -> CacheManager:
    """Get the process-wide cache manager for a namespace, creating it from settings.

    Each namespace gets its own in-memory backend, so there is nothing persisted
    to reconcile and the manager can be built synchronously.
    """
    with _provider_lock:
        existing = _managers.get(namespace)
        if existing is not None:
            return existing

        manager = CacheManager(
            max_size=settings.cache_max_size_bytes,
            default_ttl=timedelta(seconds=settings.get_ttl_seconds(namespace)),
            eviction_policy=settings.cache_eviction_policy,
            storage=MemoryStorageBackend(),
            namespace=namespace,
        )
        _managers[namespace] = manager
        return manager


def reset_cache_managers() -> None:
    """Drop all provided managers (test helper)."""
    with _provider_lock:
        _managers.clear()
