import json
from datetime import UTC, datetime, timedelta

import pytest

from memocache.cache.entry import CacheEntry, estimate_size, is_expired

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def _entry(**overrides) -> CacheEntry:
    fields = {
        "data": {"token": "abc"},
        "created_at": T0,
        "last_accessed_at": T0,
        "access_count": 1,
        "size_bytes": 15,
        "ttl": None,
    }
    fields.update(overrides)
    return CacheEntry(**fields)


def test_expiry_is_strictly_after_ttl() -> None:
    entry = _entry()
    ttl = timedelta(seconds=10)

    assert not is_expired(entry, ttl, T0 + ttl)
    assert is_expired(entry, ttl, T0 + ttl + timedelta(microseconds=1))


def test_per_key_ttl_overrides_default() -> None:
    entry = _entry(ttl=timedelta(seconds=1))
    default = timedelta(minutes=5)

    assert is_expired(entry, default, T0 + timedelta(seconds=2))
    assert not is_expired(_entry(), default, T0 + timedelta(seconds=2))


def test_expiry_measured_from_creation_not_last_access() -> None:
    entry = _entry(last_accessed_at=T0 + timedelta(seconds=9))
    assert is_expired(entry, timedelta(seconds=10), T0 + timedelta(seconds=11))


def test_touched_records_a_hit_without_changing_ttl() -> None:
    entry = _entry(ttl=timedelta(seconds=30))
    later = T0 + timedelta(seconds=5)

    touched = entry.touched(later)

    assert touched.access_count == 2
    assert touched.last_accessed_at == later
    assert touched.created_at == T0
    assert touched.ttl == timedelta(seconds=30)
    assert entry.access_count == 1


def test_new_entry_starts_with_one_access() -> None:
    entry = CacheEntry.new("v", now=T0, size_bytes=3)
    assert entry.access_count == 1
    assert entry.created_at == entry.last_accessed_at == T0
    assert entry.ttl is None


def test_wire_shape() -> None:
    entry = _entry(ttl=timedelta(seconds=10), access_count=3)

    wire = json.loads(entry.to_wire())

    assert set(wire) == {
        "data",
        "timestamp",
        "lastAccessTime",
        "accessCount",
        "sizeInBytes",
        "ttl",
    }
    assert wire["data"] == {"token": "abc"}
    assert wire["timestamp"] == "2024-01-01T12:00:00.000000+00:00"
    assert wire["accessCount"] == 3
    assert wire["sizeInBytes"] == 15
    assert wire["ttl"] == 10_000


def test_wire_round_trip() -> None:
    entry = _entry(ttl=timedelta(milliseconds=250), access_count=4)
    assert CacheEntry.from_wire(entry.to_wire()) == entry


def test_wire_without_ttl_reads_back_as_none() -> None:
    wire = json.loads(_entry().to_wire())
    assert wire["ttl"] is None
    assert CacheEntry.from_wire(_entry().to_wire()).ttl is None


def test_naive_timestamps_are_read_as_local_time() -> None:
    local = datetime(2024, 1, 1, 12, 0, 0)
    serialized = json.dumps(
        {
            "data": "x",
            "timestamp": "2024-01-01T12:00:00.000",
            "lastAccessTime": "2024-01-01T12:00:00.000",
            "accessCount": 1,
            "sizeInBytes": 3,
            "ttl": None,
        }
    )

    entry = CacheEntry.from_wire(serialized)

    assert entry.created_at.tzinfo is not None
    assert entry.created_at == local.astimezone(UTC)


def test_unserializable_payload_is_stored_by_string_form() -> None:
    entry = _entry(data={1, 2})
    assert json.loads(entry.to_wire())["data"] == str({1, 2})


@pytest.mark.parametrize(
    "serialized",
    [
        "not json",
        "[]",
        json.dumps(
            {"data": 1, "lastAccessTime": "2024-01-01T00:00:00", "accessCount": 1, "sizeInBytes": 1}
        ),
        json.dumps(
            {
                "data": 1,
                "timestamp": "yesterday",
                "lastAccessTime": "2024-01-01T00:00:00",
                "accessCount": 1,
                "sizeInBytes": 1,
            }
        ),
        json.dumps(
            {
                "data": 1,
                "timestamp": "2024-01-01T00:00:00",
                "lastAccessTime": "2024-01-01T00:00:00",
                "accessCount": 0,
                "sizeInBytes": 1,
            }
        ),
    ],
)
def test_malformed_wire_raises_value_error(serialized: str) -> None:
    with pytest.raises(ValueError):
        CacheEntry.from_wire(serialized)


def test_estimate_size_uses_compact_json_bytes() -> None:
    assert estimate_size({"a": 1}) == len('{"a":1}')
    assert estimate_size("é") == 4
    assert estimate_size(None) == 0


def test_estimate_size_falls_back_to_string_length() -> None:
    assert estimate_size({1, 2}) == len(str({1, 2}))

    class Opaque:
        def __str__(self) -> str:
            return "opaque"

    assert estimate_size(Opaque()) == 6


def test_ttl_past_calendar_end_never_expires() -> None:
    entry = _entry(ttl=timedelta.max)

    assert entry.expires_at(timedelta(seconds=1)) == datetime.max.replace(tzinfo=UTC)
    assert not is_expired(entry, timedelta(seconds=1), T0 + timedelta(days=365 * 100))


def test_out_of_range_wire_ttl_raises_value_error() -> None:
    body = json.loads(_entry().to_wire())
    body["ttl"] = 10**18

    with pytest.raises(ValueError, match="out of range"):
        CacheEntry.from_wire(json.dumps(body))
