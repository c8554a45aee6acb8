"""Canonical byte encoding for data blocks.

Every block is turned into a type-tagged byte string before hashing:

  - bytes-like  -> b"B" + raw bytes
  - str         -> b"S" + UTF-8
  - otherwise   -> b"J" + canonical JSON (sorted keys, no whitespace)

The tag keeps "1", b"1" and 1 from colliding. Below the top level, JSON
would silently coerce int dict keys to strings and tuples to lists, so both
are rejected instead of encoded.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from pushtree.errors import UnhashableBlockError

BYTES_TAG = b"B"
STR_TAG = b"S"
JSON_TAG = b"J"

_IMMUTABLE_SCALARS = (bytes, str, int, float, bool, type(None))


def canonicalize(obj: Any) -> str:
    """Serialize a JSON-compatible object deterministically.

    Raises:
        TypeError: If the object is not JSON serializable
        ValueError: If the object contains non-finite floats
    """
    return json.dumps(
        obj,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
    )


def _check_json_shape(obj: Any, active: frozenset[int] = frozenset()) -> None:
    """Reject values JSON would encode lossily."""
    if isinstance(obj, (dict, list)):
        if id(obj) in active:
            raise UnhashableBlockError("Circular reference in block")
        active = active | {id(obj)}
    if isinstance(obj, tuple):
        raise UnhashableBlockError("Tuples are not valid blocks; use a list")
    if isinstance(obj, dict):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise UnhashableBlockError(
                    f"Dict keys must be str, got {type(key).__name__} key {key!r}"
                )
            _check_json_shape(value, active)
    elif isinstance(obj, list):
        for item in obj:
            _check_json_shape(item, active)


def encode_block(data: Any) -> bytes:
    """Encode one data block into its canonical, type-tagged bytes."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return BYTES_TAG + bytes(data)
    if isinstance(data, str):
        return STR_TAG + data.encode("utf-8")
    _check_json_shape(data)
    try:
        return JSON_TAG + canonicalize(data).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise UnhashableBlockError(
            f"Cannot canonically encode block of type {type(data).__name__}: {e}"
        ) from e


def freeze_block(data: Any) -> Any:
    """Private copy of a block that later caller mutation cannot reach.

    Immutable scalars are returned as-is, bytearray/memoryview become bytes
    and everything else is deep-copied.
    """
    if isinstance(data, _IMMUTABLE_SCALARS):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    try:
        return copy.deepcopy(data)
    except (TypeError, copy.Error) as e:
        raise UnhashableBlockError(
            f"Cannot take a private copy of block of type {type(data).__name__}: {e}"
        ) from e
