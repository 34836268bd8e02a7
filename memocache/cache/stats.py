"""Process-wide cache event counters.

Every event passed to ``log_cache_event`` is counted here, so callers can take a
snapshot before and after a unit of work and report the delta.
"""

from __future__ import annotations

from copy import deepcopy
from threading import Lock

# Structure: {namespace: {event: count}}
_COUNTS: dict[str, dict[str, int]] = {}
_LOCK = Lock()


def increment(*, namespace: str, cache_event: str, count: int = 1) -> None:
    """Increment a cache event counter."""
    with _LOCK:
        ns = _COUNTS.setdefault(namespace, {})
        ns[cache_event] = ns.get(cache_event, 0) + count


def snapshot(namespace: str | None = None) -> dict[str, dict[str, int]]:
    """Return a deep copy of the counters, optionally for a single namespace."""
    with _LOCK:
        if namespace is None:
            return deepcopy(_COUNTS)
        return {namespace: dict(_COUNTS.get(namespace, {}))}


def reset() -> None:
    """Reset all counters (test helper)."""
    with _LOCK:
        _COUNTS.clear()


def hit_ratio(namespace: str) -> float:
    """Hits over hits plus misses for a namespace; 0.0 before any lookup."""
    with _LOCK:
        counts = _COUNTS.get(namespace, {})
        hits = counts.get("hit", 0)
        lookups = hits + counts.get("miss", 0)
    return hits / lookups if lookups else 0.0


def diff(
    before: dict[str, dict[str, int]],
    after: dict[str, dict[str, int]],
) -> dict[str, dict[str, int]]:
    """Compute a sparse diff (after - before) omitting zeros."""
    out: dict[str, dict[str, int]] = {}
    for ns in sorted(before.keys() | after.keys()):
        b = before.get(ns, {})
        a = after.get(ns, {})
        delta = {
            ev: a.get(ev, 0) - b.get(ev, 0)
            for ev in sorted(b.keys() | a.keys())
            if a.get(ev, 0) != b.get(ev, 0)
        }
        if delta:
            out[ns] = delta
    return out
