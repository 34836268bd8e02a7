"""In-process cache with pluggable storage, per-entry TTL and LRU/LFU/FIFO eviction."""

from memocache.cache import (
    CacheEntry,
    CacheError,
    CacheManager,
    EvictionPolicy,
    InvalidKeyError,
    MemoryStorageBackend,
    StorageBackend,
    StorageBackendError,
    cached,
    canonicalize,
    get_cache_manager,
    with_prefix,
)

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheError",
    "CacheManager",
    "EvictionPolicy",
    "InvalidKeyError",
    "MemoryStorageBackend",
    "StorageBackend",
    "StorageBackendError",
    "cached",
    "canonicalize",
    "get_cache_manager",
    "with_prefix",
]
