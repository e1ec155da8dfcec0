"""Snapshot models for capturing point-in-time manifest state.

A snapshot holds every managed collection at once.  The index keeps only the
lightweight :class:`SnapshotSummary` of each snapshot, newest-first, so that
listings never have to load full manifest bodies.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

# Bumped whenever the persisted index layout changes incompatibly.
INDEX_FORMAT_VERSION = 1

# Mapping of collection name (e.g. "items", "npcs") to its ordered entities.
ManifestCollection = dict[str, list[dict[str, Any]]]


class SnapshotMetadata(BaseModel):
    total_assets: int = 0
    changes_from_previous: int = 0
    hash: str = ""


class SnapshotSummary(BaseModel):
    """Everything about a snapshot except its manifest body."""

    id: str = Field(..., min_length=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    description: str = ""
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)


class Snapshot(SnapshotSummary):
    """Full point-in-time copy of every managed collection."""

    manifests: ManifestCollection = Field(default_factory=dict)

    def summary(self) -> SnapshotSummary:
        return SnapshotSummary(
            id=self.id,
            timestamp=self.timestamp,
            description=self.description,
            metadata=self.metadata.model_copy(),
        )


class SnapshotIndex(BaseModel):
    """Directory of all retained snapshots plus the current pointer."""

    format_version: int = INDEX_FORMAT_VERSION
    current_snapshot_id: str | None = None
    snapshots: list[SnapshotSummary] = Field(
        default_factory=list,
        description="Snapshot summaries, newest first.",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SnapshotStoreStats(BaseModel):
    initialized: bool = False
    snapshot_count: int = 0
    current_snapshot_id: str | None = None
    oldest_snapshot: SnapshotSummary | None = None
    newest_snapshot: SnapshotSummary | None = None
