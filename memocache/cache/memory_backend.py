from __future__ import annotations

from .types import StorageBackend


class MemoryStorageBackend(StorageBackend):
    """Default store: serialized entries in a plain dict, sized in UTF-8 bytes."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    async def write(self, key: str, serialized_entry: str) -> None:
        self._entries[key] = serialized_entry

    async def read(self, key: str) -> str | None:
        return self._entries.get(key)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def get_all_keys(self) -> list[str]:
        return list(self._entries)

    async def get_key_size(self, key: str) -> int:
        value = self._entries.get(key)
        return _byte_len(value) if value is not None else 0

    async def get_total_size(self) -> int:
        return sum(_byte_len(value) for value in self._entries.values())

    async def get_all_entries(self) -> dict[str, str]:
        return dict(self._entries)


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))
