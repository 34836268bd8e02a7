import pytest

from memocache.cache.memory_backend import MemoryStorageBackend


@pytest.mark.asyncio
async def test_write_read_delete() -> None:
    store = MemoryStorageBackend()

    await store.write("k", "value")
    assert await store.read("k") == "value"

    await store.delete("k")
    assert await store.read("k") is None

    # Deleting again is a no-op
    await store.delete("k")


@pytest.mark.asyncio
async def test_sizes_are_utf8_bytes() -> None:
    store = MemoryStorageBackend()
    await store.write("a", "abc")
    await store.write("b", "é")

    assert await store.get_key_size("a") == 3
    assert await store.get_key_size("b") == 2
    assert await store.get_key_size("missing") == 0
    assert await store.get_total_size() == 5


@pytest.mark.asyncio
async def test_listing_and_clear() -> None:
    store = MemoryStorageBackend()
    await store.write("a", "1")
    await store.write("b", "2")

    assert await store.get_all_keys() == ["a", "b"]

    entries = await store.get_all_entries()
    assert entries == {"a": "1", "b": "2"}

    # Returned mapping is a copy
    entries["c"] = "3"
    assert await store.read("c") is None

    await store.clear()
    assert await store.get_all_keys() == []
    assert await store.get_total_size() == 0
