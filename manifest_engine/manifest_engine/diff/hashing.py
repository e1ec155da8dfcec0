"""Deterministic content hashing for structured records.

Records are serialised to canonical JSON (keys sorted at every level, compact
separators, integral floats collapsed to ints, dates as ISO-8601) and hashed
with 32-bit FNV-1a.  The hash only exists to skip redundant saves: it is not
a security or uniqueness guarantee, and a collision merely means one save is
treated as a no-op.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from datetime import date
from typing import Any

from manifest_engine.models.entity import entity_id

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
_MASK_32 = 0xFFFFFFFF


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def canonical_json(record: Any) -> str:
    """Serialise ``record`` to a canonical, key-order-independent JSON string."""
    return json.dumps(
        _normalize(record),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def fnv1a_32(payload: bytes) -> int:
    value = FNV_OFFSET_BASIS
    for byte in payload:
        value ^= byte
        value = (value * FNV_PRIME) & _MASK_32
    return value


def hash_record(record: Any) -> str:
    """Return the 8-hex-digit content hash of ``record``."""
    digest = fnv1a_32(canonical_json(record).encode("utf-8"))
    return f"{digest:08x}"


def hash_manifests(manifests: Mapping[str, list[Mapping[str, Any]]]) -> str:
    """Composite hash of a manifest collection.

    Combines the sorted entity ids of each collection with a full-content hash
    in which every collection is ordered by id, so two collections holding the
    same entities in a different order hash equal.
    """
    ids_by_collection = {
        name: sorted(entity_id(entity) for entity in entities)
        for name, entities in manifests.items()
    }
    ordered_content = {
        name: sorted(entities, key=entity_id)
        for name, entities in manifests.items()
    }
    return hash_record(
        {
            "ids": ids_by_collection,
            "full_hash": hash_record(ordered_content),
        }
    )
