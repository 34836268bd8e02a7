from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_NEVER = datetime.max.replace(tzinfo=UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Payload plus the access metadata eviction and expiry decisions need."""

    data: Any
    created_at: datetime
    last_accessed_at: datetime
    access_count: int
    size_bytes: int
    ttl: timedelta | None = None

    @classmethod
    def new(
        cls,
        data: Any,
        *,
        now: datetime,
        size_bytes: int,
        ttl: timedelta | None = None,
    ) -> CacheEntry:
        return cls(
            data=data,
            created_at=now,
            last_accessed_at=now,
            access_count=1,
            size_bytes=size_bytes,
            ttl=ttl,
        )

    def touched(self, now: datetime) -> CacheEntry:
        """Return a copy recording one more read hit at ``now``."""
        return replace(self, last_accessed_at=now, access_count=self.access_count + 1)

    def expires_at(self, default_ttl: timedelta) -> datetime:
        ttl = self.ttl if self.ttl is not None else default_ttl
        try:
            return self.created_at + ttl
        except OverflowError:
            # Past the calendar end the entry never expires.
            return _NEVER

    def to_wire(self) -> str:
        """Serialize to the persisted JSON shape.

        Payloads that are not JSON-serializable are stored by their string form;
        the in-memory index keeps the original object.
        """
        body = {
            "data": self.data,
            "timestamp": _format_timestamp(self.created_at),
            "lastAccessTime": _format_timestamp(self.last_accessed_at),
            "accessCount": self.access_count,
            "sizeInBytes": self.size_bytes,
            "ttl": _ttl_to_millis(self.ttl),
        }
        try:
            return _dump_compact(body)
        except (TypeError, ValueError):
            # Non-str dict keys and cycles get past default=str.
            body["data"] = str(self.data)
            return _dump_compact(body)

    @classmethod
    def from_wire(cls, serialized_entry: str) -> CacheEntry:
        """Parse a persisted entry.

        Raises:
            ValueError: the text is not valid JSON or does not match the entry shape,
                or its timestamps or ttl are out of range.
        """
        wire = _WireEntry.model_validate_json(serialized_entry)
        try:
            return cls(
                data=wire.data,
                created_at=_as_utc(wire.timestamp),
                last_accessed_at=_as_utc(wire.last_access_time),
                access_count=wire.access_count,
                size_bytes=wire.size_in_bytes,
                ttl=timedelta(milliseconds=wire.ttl) if wire.ttl is not None else None,
            )
        except OverflowError as exc:
            raise ValueError(f"Persisted entry out of range: {exc}") from exc


class _WireEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    data: Any = None
    timestamp: datetime
    last_access_time: datetime = Field(alias="lastAccessTime")
    access_count: int = Field(alias="accessCount", ge=1)
    size_in_bytes: int = Field(alias="sizeInBytes", ge=0)
    ttl: int | None = Field(default=None, ge=0)


def is_expired(entry: CacheEntry, default_ttl: timedelta, now: datetime) -> bool:
    """Expired iff ``now`` is strictly after creation plus the effective TTL.

    Expiry is measured from creation; read hits never extend it.
    """
    return now > entry.expires_at(default_ttl)


def estimate_size(payload: Any) -> int:
    """Byte length of the payload's compact JSON form, or a string-length estimate."""
    if payload is None:
        return 0
    try:
        encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return len(str(payload))
    return len(encoded.encode("utf-8"))


def _dump_compact(body: dict[str, Any]) -> str:
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False, default=str)


def _format_timestamp(value: datetime) -> str:
    return _as_utc(value).isoformat(timespec="microseconds")


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from older persisted data are taken as local time.
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(UTC)


def _ttl_to_millis(ttl: timedelta | None) -> int | None:
    if ttl is None:
        return None
    return ttl // timedelta(milliseconds=1)
