"""Domain models for the manifest engine."""

from manifest_engine.models.diff import (
    AssetChange,
    AssetHistoryEntry,
    ChangeType,
    DiffSummary,
    FieldChange,
    HistoryChangeType,
    SnapshotDiff,
    SnapshotDiffSummary,
    VersionDiff,
)
from manifest_engine.models.entity import EntityRecord, entity_id, entity_name
from manifest_engine.models.export import (
    ExportedAsset,
    ExportHistory,
    ExportRecord,
    ExportStatus,
)
from manifest_engine.models.snapshot import (
    ManifestCollection,
    Snapshot,
    SnapshotIndex,
    SnapshotMetadata,
    SnapshotStoreStats,
    SnapshotSummary,
)
from manifest_engine.models.version import (
    AssetVersion,
    AssetVersionChain,
    VersionStorageStats,
)

__all__ = [
    "AssetChange",
    "AssetHistoryEntry",
    "AssetVersion",
    "AssetVersionChain",
    "ChangeType",
    "DiffSummary",
    "EntityRecord",
    "ExportHistory",
    "ExportRecord",
    "ExportStatus",
    "ExportedAsset",
    "FieldChange",
    "HistoryChangeType",
    "ManifestCollection",
    "Snapshot",
    "SnapshotDiff",
    "SnapshotDiffSummary",
    "SnapshotIndex",
    "SnapshotMetadata",
    "SnapshotStoreStats",
    "SnapshotSummary",
    "VersionDiff",
    "VersionStorageStats",
    "entity_id",
    "entity_name",
]
