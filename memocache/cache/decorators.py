"""Memoization of async functions through a CacheManager."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from datetime import timedelta
from functools import wraps
from typing import Any

from .keys import with_prefix
from .manager import CacheManager


def cached(
    cache: CacheManager | Callable[[], CacheManager],
    *,
    prefix: str,
    ttl: timedelta | None = None,
):
    """
    Decorator caching an async function's results under structured keys.

    Call arguments are bound to the function signature (defaults applied) and
    canonicalized under ``prefix``, so ``search(q="a", page=1)`` and
    ``search(page=1, q="a")`` share an entry.

    Args:
        cache: A manager, or a zero-arg callable returning one (resolved per call)
        prefix: Key namespace for this function, used by ``cache_clear``;
            must not contain ``:``
        ttl: Optional per-entry TTL; the manager default applies otherwise
    """
    if not prefix:
        raise ValueError("prefix must be non-empty")
    if ":" in prefix:
        # cache_clear matches "<prefix>:", which would reach nested prefixes.
        raise ValueError("prefix must not contain ':'")

    def resolve() -> CacheManager:
        return cache if isinstance(cache, CacheManager) else cache()

    def decorator(func: Callable[..., Awaitable[Any]]):
        signature = inspect.signature(func)

        def make_key(*args: Any, **kwargs: Any) -> str:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            return with_prefix(prefix, dict(bound.arguments))

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = make_key(*args, **kwargs)
            return await resolve().get(key, lambda: func(*args, **kwargs), ttl=ttl)

        async def cache_invalidate(*args: Any, **kwargs: Any) -> None:
            await resolve().invalidate(make_key(*args, **kwargs))

        async def cache_clear() -> int:
            manager = resolve()
            removed = await manager.invalidate_pattern(f"{prefix}:")
            # A function without parameters stores under the bare prefix.
            if manager.has(prefix):
                await manager.invalidate(prefix)
                removed += 1
            return removed

        wrapper.cache_key = make_key  # type: ignore[attr-defined]
        wrapper.cache_invalidate = cache_invalidate  # type: ignore[attr-defined]
        wrapper.cache_clear = cache_clear  # type: ignore[attr-defined]

        return wrapper

    return decorator
