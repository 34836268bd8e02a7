from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

type CacheNamespace = str

type KeyValue = (
    str | int | float | bool | None | Sequence[KeyValue] | Mapping[str, KeyValue]
)

type RawKey = str | Mapping[str, KeyValue]

type Fetcher = Callable[[], Awaitable[Any]]

type Clock = Callable[[], datetime]


class StorageBackend(Protocol):
    """Persistence for serialized cache entries, keyed by canonical key."""

    async def write(self, key: str, serialized_entry: str) -> None: ...

    async def read(self, key: str) -> str | None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def get_all_keys(self) -> list[str]: ...

    async def get_key_size(self, key: str) -> int: ...

    async def get_total_size(self) -> int: ...

    async def get_all_entries(self) -> dict[str, str]: ...
