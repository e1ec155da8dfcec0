"""Engine facade wiring every store to one configured backend."""

from __future__ import annotations

import logging

from manifest_engine.config import Settings, load_settings
from manifest_engine.storage.base import BlobStore
from manifest_engine.storage.factory import create_blob_store
from manifest_engine.versioning.export_history import ExportHistoryStore
from manifest_engine.versioning.history import HistoryReconstructor
from manifest_engine.versioning.snapshot_store import SnapshotStore
from manifest_engine.versioning.version_store import VersionStore

logger = logging.getLogger(__name__)


class ManifestEngine:
    """Bundle of version, snapshot, history, and export stores.

    Each engine owns its caches, so several independent engines can coexist
    in one process (e.g. one per project or per test).

    Parameters
    ----------
    store:
        Backend shared by all stores.
    settings:
        Retention limits.  Defaults are loaded from the environment.
    """

    def __init__(self, store: BlobStore, settings: Settings | None = None) -> None:
        settings = settings or load_settings()
        self.store = store
        self.settings = settings
        self.versions = VersionStore(store, max_versions=settings.max_versions_per_asset)
        self.snapshots = SnapshotStore(store, max_snapshots=settings.max_snapshots)
        self.history = HistoryReconstructor(self.snapshots)
        self.exports = ExportHistoryStore(store, max_records=settings.max_export_records)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ManifestEngine:
        settings = settings or load_settings()
        engine = cls(create_blob_store(settings), settings)
        logger.info("Manifest engine ready (storage=%s)", settings.storage_backend.value)
        return engine

    def clear_cache(self) -> None:
        """Drop every in-process cache; persisted data is untouched."""
        self.versions.invalidate()
        self.snapshots.invalidate()
        self.exports.invalidate()
