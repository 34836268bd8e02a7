from .decorators import cached
from .entry import CacheEntry, estimate_size, is_expired
from .errors import CacheError, InvalidKeyError, StorageBackendError
from .keys import canonicalize, with_prefix
from .manager import CacheManager
from .memory_backend import MemoryStorageBackend
from .policy import EvictionPolicy, select_eviction_candidate
from .provider import get_cache_manager, reset_cache_managers
from .types import CacheNamespace, Fetcher, KeyValue, RawKey, StorageBackend

__all__ = [
    "CacheEntry",
    "CacheError",
    "CacheManager",
    "CacheNamespace",
    "EvictionPolicy",
    "Fetcher",
    "InvalidKeyError",
    "KeyValue",
    "MemoryStorageBackend",
    "RawKey",
    "StorageBackend",
    "StorageBackendError",
    "cached",
    "canonicalize",
    "estimate_size",
    "get_cache_manager",
    "is_expired",
    "reset_cache_managers",
    "select_eviction_candidate",
    "with_prefix",
]
