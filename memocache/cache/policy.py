"""Eviction policies for the size-budgeted cache."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .entry import CacheEntry


class EvictionPolicy(str, Enum):
    """Enumeration of supported eviction policies."""

    LRU = "lru"  # Least Recently Used
    LFU = "lfu"  # Least Frequently Used
    FIFO = "fifo"  # First In First Out

    @classmethod
    def parse(cls, value: EvictionPolicy | str) -> EvictionPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unknown eviction policy {value!r}; expected one of: {allowed}"
            ) from None


_SORT_KEYS: dict[EvictionPolicy, Callable[[CacheEntry], Any]] = {
    EvictionPolicy.LRU: lambda entry: entry.last_accessed_at,
    EvictionPolicy.LFU: lambda entry: entry.access_count,
    EvictionPolicy.FIFO: lambda entry: entry.created_at,
}


def select_eviction_candidate(policy: EvictionPolicy, index: Mapping[str, CacheEntry]) -> str:
    """Pick the key to evict next.

    Ties go to the key that comes first in the index's iteration order.
    Entry sizes are never considered.
    """
    if not index:
        raise ValueError("Cannot select an eviction candidate from an empty index")

    sort_key = _SORT_KEYS[policy]
    # min() keeps the first of equal elements.
    return min(index, key=lambda key: sort_key(index[key]))
