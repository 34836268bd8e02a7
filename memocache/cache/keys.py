from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .errors import InvalidKeyError
from .types import RawKey


def canonicalize(raw_key: RawKey) -> str:
    """Normalize a raw key into its canonical cache key.

    Strings pass through unchanged. Mappings become ``k1:v1|k2:v2`` with keys
    sorted ascending and every value encoded with a type tag, so ``"123"`` and
    ``123`` never collide. Mapping order is irrelevant; sequence order is kept.
    """
    if isinstance(raw_key, str):
        return raw_key
    if isinstance(raw_key, Mapping):
        return _encode_mapping(raw_key)
    raise InvalidKeyError(raw_key)


def with_prefix(prefix: str, params: Mapping[str, Any]) -> str:
    """Namespace a mapping key, e.g. ``user:id:s:123|type:s:admin``."""
    map_key = canonicalize(params)
    return f"{prefix}:{map_key}" if map_key else prefix


def _encode_mapping(params: Mapping[Any, Any]) -> str:
    for key in params:
        if not isinstance(key, str):
            raise InvalidKeyError(
                params,
                reason=f"Mapping keys must be str, got {type(key).__name__}",
            )
    return "|".join(f"{key}:{_encode_value(params[key])}" for key in sorted(params))


def _encode_value(value: Any) -> str:
    # bool is checked before int since it is an int subclass.
    if value is None:
        return "null:"
    if isinstance(value, str):
        return f"s:{value}"
    if isinstance(value, bool):
        return "b:true" if value else "b:false"
    if isinstance(value, int):
        return f"i:{value}"
    if isinstance(value, float):
        return f"d:{value!r}"
    if isinstance(value, (list, tuple)):
        return "l:[" + ",".join(_encode_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        return "m:{" + _encode_mapping(value) + "}"
    return f"o:{value}"
