"""Version chains, snapshots, history reconstruction, and export log."""

from manifest_engine.versioning.export_history import ExportHistoryStore
from manifest_engine.versioning.history import HistoryReconstructor
from manifest_engine.versioning.recovery import LoadResult, LoadStatus, load_document
from manifest_engine.versioning.snapshot_store import (
    SnapshotStore,
    compare_collection,
    compare_manifests,
)
from manifest_engine.versioning.version_store import VersionStore

__all__ = [
    "ExportHistoryStore",
    "HistoryReconstructor",
    "LoadResult",
    "LoadStatus",
    "SnapshotStore",
    "VersionStore",
    "compare_collection",
    "compare_manifests",
    "load_document",
]
