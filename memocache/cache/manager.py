"""Cache manager: key canonicalization, TTL, size budget and eviction in one place.

The manager owns the in-memory metadata index (canonical key -> CacheEntry),
which is authoritative for reads and eviction. The storage backend only ever
receives serialized snapshots of entries.

Operations assume a single coordinating task at a time; there is no lock around
the index. The one exception is ``get``, which coalesces concurrent misses on the
same canonical key so the fetcher runs once.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from memocache.logger import get_logger

from .entry import CacheEntry, estimate_size, is_expired, utc_now
from .keys import canonicalize
from .logging import CacheTimer, log_cache_event
from .memory_backend import MemoryStorageBackend
from .policy import EvictionPolicy, select_eviction_candidate
from .singleflight import SingleFlight
from .types import Clock, Fetcher, RawKey, StorageBackend

logger = get_logger(__name__)

_MISS = object()


class CacheManager:
    """Size-budgeted cache over a pluggable storage backend.

    Build instances with ``await CacheManager.create(...)`` so persisted entries
    are reconciled into the metadata index before first use.

    Example:
        >>> cache = await CacheManager.create(
        ...     max_size=1024 * 1024,
        ...     default_ttl=timedelta(minutes=5),
        ...     eviction_policy=EvictionPolicy.LRU,
        ... )
        >>> await cache.set({"page": 1, "q": "parks"}, [{"id": 7}])
        >>> await cache.get_if_present({"q": "parks", "page": 1})
        [{'id': 7}]
    """

    def __init__(
        self,
        *,
        max_size: int,
        default_ttl: timedelta,
        eviction_policy: EvictionPolicy | str = EvictionPolicy.LRU,
        storage: StorageBackend | None = None,
        namespace: str = "default",
        clock: Clock | None = None,
    ) -> None:
        if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
            raise ValueError("max_size must be a positive integer")
        if default_ttl <= timedelta(0):
            raise ValueError("default_ttl must be > 0")

        self._max_size = max_size
        self._default_ttl = default_ttl
        self._policy = EvictionPolicy.parse(eviction_policy)
        self._storage: StorageBackend = storage if storage is not None else MemoryStorageBackend()
        self._namespace = namespace
        self._clock: Clock = clock or utc_now
        self._index: dict[str, CacheEntry] = {}
        self._singleflight = SingleFlight()

    @classmethod
    async def create(
        cls,
        *,
        max_size: int,
        default_ttl: timedelta,
        eviction_policy: EvictionPolicy | str = EvictionPolicy.LRU,
        storage: StorageBackend | None = None,
        namespace: str = "default",
        clock: Clock | None = None,
    ) -> CacheManager:
        manager = cls(
            max_size=max_size,
            default_ttl=default_ttl,
            eviction_policy=eviction_policy,
            storage=storage,
            namespace=namespace,
            clock=clock,
        )
        await manager._reconcile()
        return manager

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    @property
    def eviction_policy(self) -> EvictionPolicy:
        return self._policy

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    @property
    def namespace(self) -> str:
        return self._namespace

    async def get(
        self,
        raw_key: RawKey,
        fetcher: Fetcher,
        *,
        ttl: timedelta | None = None,
    ) -> Any:
        """Return the cached payload, or fetch, store and return a fresh one.

        The fetcher is awaited at most once per miss; if it raises, the error
        propagates and nothing is written.
        """
        key = canonicalize(raw_key)
        value = await self._read(key)
        if value is not _MISS:
            return value

        async with self._singleflight.gate(key):
            # Another caller may have filled the key while we waited.
            value = await self._read(key, count_miss=False)
            if value is not _MISS:
                return value

            fresh = await fetcher()
            await self._write(key, fresh, ttl)
            return fresh

    async def get_if_present(self, raw_key: RawKey) -> Any | None:
        """Return the payload if present and not expired, else None.

        Expired entries are left in place; only overwrite, eviction or
        invalidation removes them.
        """
        value = await self._read(canonicalize(raw_key))
        return None if value is _MISS else value

    def has(self, raw_key: RawKey) -> bool:
        """Index membership only: expiry is not checked and metadata is not touched."""
        return canonicalize(raw_key) in self._index

    async def get_many(self, raw_keys: Iterable[RawKey]) -> dict[str, Any]:
        """Look up each key independently; misses are omitted from the result.

        The result is keyed by canonical key.
        """
        found: dict[str, Any] = {}
        for raw_key in raw_keys:
            key = canonicalize(raw_key)
            value = await self._read(key)
            if value is not _MISS and value is not None:
                found[key] = value
        return found

    async def set(self, raw_key: RawKey, payload: Any, *, ttl: timedelta | None = None) -> None:
        """Store a payload, evicting other entries first if the budget requires it."""
        await self._write(canonicalize(raw_key), payload, ttl)

    async def set_many(
        self,
        entries: Mapping[str, Any] | Iterable[tuple[RawKey, Any]],
        *,
        ttl: timedelta | None = None,
    ) -> None:
        """Store several payloads sequentially; each ``set`` stands on its own."""
        items = entries.items() if isinstance(entries, Mapping) else entries
        for raw_key, payload in items:
            await self.set(raw_key, payload, ttl=ttl)

    async def invalidate(self, raw_key: RawKey) -> None:
        key = canonicalize(raw_key)
        timer = CacheTimer()
        await self._remove(key)
        log_cache_event(
            namespace=self._namespace,
            cache_event="invalidate",
            duration_ms=timer.elapsed_ms(),
        )

    async def invalidate_pattern(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. An empty prefix removes nothing.

        Returns:
            Number of entries removed.
        """
        if not prefix:
            return 0

        timer = CacheTimer()
        matching = [key for key in self._index if key.startswith(prefix)]
        for key in matching:
            await self._remove(key)

        log_cache_event(
            namespace=self._namespace,
            cache_event="invalidate",
            duration_ms=timer.elapsed_ms(),
            detail=f"pattern=prefix count={len(matching)}",
        )
        return len(matching)

    async def clear(self) -> None:
        timer = CacheTimer()
        self._index.clear()
        await self._storage.clear()
        log_cache_event(
            namespace=self._namespace,
            cache_event="clear",
            duration_ms=timer.elapsed_ms(),
        )

    def get_stats(self) -> dict[str, Any]:
        """Index statistics.

        ``totalSize`` sums tracked payload sizes and is not the backend's total.
        """
        return {
            "totalEntries": len(self._index),
            "totalSize": sum(entry.size_bytes for entry in self._index.values()),
            "maxSize": self._max_size,
            "evictionPolicy": self._policy.value,
        }

    def _now(self) -> datetime:
        return self._clock()

    async def _read(self, key: str, *, count_miss: bool = True) -> Any:
        timer = CacheTimer()
        now = self._now()
        entry = self._index.get(key)
        if entry is None or is_expired(entry, self._default_ttl, now):
            if count_miss:
                log_cache_event(
                    namespace=self._namespace,
                    cache_event="miss",
                    duration_ms=timer.elapsed_ms(),
                    detail="reason=expired" if entry is not None else None,
                )
            return _MISS

        touched = entry.touched(now)
        await self._storage.write(key, touched.to_wire())
        self._index[key] = touched
        log_cache_event(
            namespace=self._namespace,
            cache_event="hit",
            duration_ms=timer.elapsed_ms(),
        )
        return entry.data

    async def _write(self, key: str, payload: Any, ttl: timedelta | None) -> None:
        timer = CacheTimer()
        size_bytes = estimate_size(payload)
        await self._evict_if_needed(size_bytes)

        entry = CacheEntry.new(payload, now=self._now(), size_bytes=size_bytes, ttl=ttl)
        serialized_entry = entry.to_wire()
        await self._storage.write(key, serialized_entry)
        # The index only records what the backend accepted.
        self._index[key] = entry
        log_cache_event(
            namespace=self._namespace,
            cache_event="set",
            duration_ms=timer.elapsed_ms(),
        )

    async def _evict_if_needed(self, incoming_size: int) -> None:
        # An oversized entry is still admitted once the index is empty.
        evicted = 0
        while self._index and (
            await self._storage.get_total_size() + incoming_size > self._max_size
        ):
            victim = select_eviction_candidate(self._policy, self._index)
            await self._remove(victim)
            evicted += 1

        if evicted:
            log_cache_event(
                namespace=self._namespace,
                cache_event="evict",
                detail=f"reason={self._policy.value} count={evicted}",
            )

    async def _remove(self, key: str) -> None:
        self._index.pop(key, None)
        await self._storage.delete(key)

    async def _reconcile(self) -> None:
        """Rebuild the metadata index from whatever the backend holds."""
        timer = CacheTimer()
        now = self._now()
        admitted = expired = malformed = 0

        persisted = await self._storage.get_all_entries()
        for key, serialized_entry in persisted.items():
            try:
                entry = CacheEntry.from_wire(serialized_entry)
            except (ValueError, TypeError) as exc:
                logger.warning(
                    "cache_entry_malformed",
                    namespace=self._namespace,
                    error=type(exc).__name__,
                )
                await self._storage.delete(key)
                malformed += 1
                continue

            if is_expired(entry, self._default_ttl, now):
                await self._storage.delete(key)
                expired += 1
                continue

            self._index[key] = entry
            admitted += 1

        log_cache_event(
            namespace=self._namespace,
            cache_event="reconcile",
            duration_ms=timer.elapsed_ms(),
            detail=f"admitted={admitted} expired={expired} malformed={malformed}",
        )
