"""Content hashing used as fixture identity when no explicit key is given.

Payloads are normalized to JSON-safe primitives, then serialized per RFC 8785
(JSON Canonicalization Scheme) by the rfc8785 package. Keys are sorted and
numbers use their canonical JSON form, so logically equal payloads hash equally
regardless of key insertion order or int/float spelling (1 == 1.0). NaN and
Infinity are rejected rather than coerced.
"""

from __future__ import annotations

import base64
import hashlib
import math
from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

import rfc8785

from fixturekeeper.errors import FixtureSerializationError

HASH_VERSION = "sha256-rfc8785-v1"


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        normalized: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise FixtureSerializationError(f"Payload keys must be strings, got {type(key).__name__}")
            normalized[key] = _normalize(item)
        return normalized
    if isinstance(value, list | tuple):
        return [_normalize(item) for item in value]
    if isinstance(value, bool) or value is None or isinstance(value, str | int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise FixtureSerializationError(f"Cannot hash non-finite float: {value}")
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise FixtureSerializationError(f"Cannot hash non-finite Decimal: {value}")
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bytes):
        return {"__bytes__": base64.b64encode(value).decode("ascii")}
    raise FixtureSerializationError(f"Cannot hash value of type {type(value).__name__}")


def canonical_json(payload: Any) -> str:
    """Return the canonical JSON text for ``payload``.

    Raises:
        FixtureSerializationError: If the payload holds values with no JSON form.
    """

    normalized = _normalize(payload)
    try:
        result: bytes = rfc8785.dumps(normalized)
    except rfc8785.CanonicalizationError as exc:
        raise FixtureSerializationError(f"Cannot canonicalize payload: {exc}") from exc
    return result.decode("utf-8")


def content_hash(payload: Any) -> str:
    """Return the SHA-256 hex digest of the canonical JSON of ``payload``."""

    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
