"""Diff models for comparing entity versions and manifest snapshots.

A diff is always a flat list of :class:`FieldChange` entries addressed by a
dot-delimited path.  Summaries are derived from that list on demand and are
never stored independently of it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ChangeType(str, Enum):
    """Classification of a single field change."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class HistoryChangeType(str, Enum):
    """Classification of one step in a reconstructed asset timeline."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNCHANGED = "unchanged"


class FieldChange(BaseModel):
    """One path-addressed difference between two record states.

    ``added`` changes carry only ``new_value`` and ``deleted`` changes carry
    only ``old_value``.  The absent side is ``None`` in memory and omitted by
    :meth:`to_dict`, so presence is decided by ``type`` rather than by the
    value (``None`` is a legitimate JSON ``null``).
    """

    path: str = Field(
        ...,
        description="Dot-delimited location of the field, e.g. 'stats.attack'.",
    )
    type: ChangeType = Field(..., description="Kind of change.")
    old_value: Any = Field(default=None, description="Value before the change.")
    new_value: Any = Field(default=None, description="Value after the change.")

    @property
    def has_old_value(self) -> bool:
        return self.type != ChangeType.ADDED

    @property
    def has_new_value(self) -> bool:
        return self.type != ChangeType.DELETED

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict containing only the sides this change carries."""
        payload: dict[str, Any] = {"path": self.path, "type": self.type.value}
        if self.has_old_value:
            payload["old_value"] = self.old_value
        if self.has_new_value:
            payload["new_value"] = self.new_value
        return payload


class DiffSummary(BaseModel):
    """Counts of each change type in a change list."""

    added: int = 0
    modified: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.deleted


class VersionDiff(BaseModel):
    """Field-level diff between two versions of the same asset."""

    from_version_id: str
    to_version_id: str
    asset_id: str
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    has_changes: bool
    change_count: int
    summary: DiffSummary
    changes: list[FieldChange] = Field(default_factory=list)


class AssetChange(BaseModel):
    """Entity-level change between two snapshots within one collection."""

    asset_id: str
    asset_name: str = ""
    collection: str
    change_type: ChangeType
    field_changes: list[FieldChange] = Field(
        default_factory=list,
        description="Field changes; populated only for modified assets.",
    )


class SnapshotDiffSummary(BaseModel):
    """Entity-level totals of a snapshot comparison."""

    added: int = 0
    modified: int = 0
    deleted: int = 0
    total: int = 0


class SnapshotDiff(BaseModel):
    """Flat, aggregated entity-level diff between two snapshots."""

    from_snapshot_id: str
    to_snapshot_id: str
    calculated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    summary: SnapshotDiffSummary
    changes: list[AssetChange] = Field(default_factory=list)


class AssetHistoryEntry(BaseModel):
    """One row of a reconstructed per-asset timeline.  Computed, never persisted."""

    snapshot_id: str
    timestamp: datetime
    description: str
    change_type: HistoryChangeType
    field_changes: list[FieldChange] = Field(default_factory=list)
