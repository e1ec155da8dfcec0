"""Accessors for schema-agnostic entity records.

The engine treats entities as opaque mappings of JSON-representable values.
The only structural requirement is a string ``id``; a ``name`` is used for
human-readable change summaries when present.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

EntityRecord = Mapping[str, Any]


def entity_id(entity: EntityRecord) -> str:
    """Return the entity's ``id``.

    Raises
    ------
    ValueError
        If the entity has no string ``id``.
    """
    value = entity.get("id") if isinstance(entity, Mapping) else None
    if not isinstance(value, str) or not value:
        raise ValueError(f"Entity is missing a non-empty string 'id': {entity!r:.120}")
    return value


def entity_name(entity: EntityRecord) -> str:
    """Return the entity's ``name`` or an empty string."""
    value = entity.get("name", "")
    return value if isinstance(value, str) else str(value)
