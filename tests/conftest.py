"""Test fixtures and configuration."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

import pytest

from memocache.cache import stats as cache_stats
from memocache.cache.manager import CacheManager
from memocache.cache.memory_backend import MemoryStorageBackend
from memocache.cache.policy import EvictionPolicy
from memocache.cache.provider import reset_cache_managers
from memocache.logger import setup_logging

setup_logging()


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _reset_cache_state():
    cache_stats.reset()
    reset_cache_managers()
    yield
    cache_stats.reset()
    reset_cache_managers()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def make_manager(
    clock: FakeClock, storage: MemoryStorageBackend
) -> Callable[..., Awaitable[CacheManager]]:
    """Factory for managers sharing the test's clock and storage."""

    async def _make(
        *,
        max_size: int = 1024 * 1024,
        default_ttl: timedelta = timedelta(minutes=5),
        eviction_policy: EvictionPolicy | str = EvictionPolicy.LRU,
        namespace: str = "test",
    ) -> CacheManager:
        return await CacheManager.create(
            max_size=max_size,
            default_ttl=default_ttl,
            eviction_policy=eviction_policy,
            storage=storage,
            namespace=namespace,
            clock=clock,
        )

    return _make
