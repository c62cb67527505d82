"""JSON encoding of checkpoint records.

Item state reaches the store as a python-mode pydantic dump, so values
such as ``ParcelState.published_at`` are still ``datetime`` objects here.
They are written as tagged objects::

    {"__waypoint_type__": "datetime", "__waypoint_value__": "2026-01-15T10:00:00+00:00"}

and decoded back into aware datetimes. A mapping from item state that
itself uses the tag key is written under an ``escaped_dict`` tag so it is
returned unchanged. Non-finite floats cannot be represented and are
rejected.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

TYPE_KEY = "__waypoint_type__"
VALUE_KEY = "__waypoint_value__"


def _tagged(kind: str, value: Any) -> dict[str, Any]:
    return {TYPE_KEY: kind, VALUE_KEY: value}


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        # Naive datetimes are taken as UTC
        aware = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return _tagged("datetime", aware.isoformat())
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Cannot store non-finite float {value!r} in a checkpoint; use None instead")
    if isinstance(value, Mapping):
        encoded = {key: _encode(item) for key, item in value.items()}
        return _tagged("escaped_dict", encoded) if TYPE_KEY in encoded else encoded
    if isinstance(value, list | tuple):
        return [_encode(item) for item in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, list):
        return [_decode(item) for item in value]
    if not isinstance(value, dict):
        return value
    if value.keys() == {TYPE_KEY, VALUE_KEY}:
        kind, payload = value[TYPE_KEY], value[VALUE_KEY]
        if kind == "datetime" and isinstance(payload, str):
            return datetime.fromisoformat(payload)
        if kind == "escaped_dict" and isinstance(payload, dict):
            return {key: _decode(item) for key, item in payload.items()}
    return {key: _decode(item) for key, item in value.items()}


def checkpoint_dumps(record: Any) -> str:
    """Encode a checkpoint record as indented JSON.

    Raises:
        ValueError: If the record contains NaN or Infinity
        TypeError: If the record contains a value JSON cannot represent
    """
    return json.dumps(_encode(record), allow_nan=False, indent=2)


def checkpoint_loads(text: str) -> Any:
    """Decode a record written by checkpoint_dumps().

    Raises:
        json.JSONDecodeError: If ``text`` is not valid JSON
    """
    return _decode(json.loads(text))
