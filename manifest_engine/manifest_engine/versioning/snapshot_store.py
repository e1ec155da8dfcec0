"""Whole-collection manifest snapshots with a bounded index.

A snapshot is a full copy of every managed collection.  Bodies are stored one
blob per snapshot id; a single index blob lists their summaries newest-first
together with the ``current`` pointer.  Creating a snapshot annotates it with
the number of entities that changed relative to the current snapshot and
evicts the oldest snapshots beyond the retention limit.  Restoring is a new
snapshot of the target's content; no existing snapshot is ever rewritten.

Every index read-modify-write runs under one store-wide lock.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from manifest_engine.diff.deep_diff import compute_diff
from manifest_engine.diff.hashing import hash_manifests
from manifest_engine.models.diff import AssetChange, ChangeType, SnapshotDiff, SnapshotDiffSummary
from manifest_engine.models.entity import entity_id, entity_name
from manifest_engine.models.snapshot import (
    INDEX_FORMAT_VERSION,
    ManifestCollection,
    Snapshot,
    SnapshotIndex,
    SnapshotMetadata,
    SnapshotStoreStats,
    SnapshotSummary,
)
from manifest_engine.storage.base import BlobStore, to_document, write_json
from manifest_engine.versioning.ids import generate_id
from manifest_engine.versioning.recovery import LoadResult, load_document

logger = logging.getLogger(__name__)

SNAPSHOTS_NAMESPACE = "snapshots"
INDEX_KEY = "index"
MAX_SNAPSHOTS = 100


# ---------------------------------------------------------------------------
# Manifest comparison
# ---------------------------------------------------------------------------


def count_assets(manifests: Mapping[str, Sequence[Any]]) -> int:
    return sum(len(entities) for entities in manifests.values())


def compare_collection(
    old_entities: Sequence[Mapping[str, Any]],
    new_entities: Sequence[Mapping[str, Any]],
    collection: str,
) -> list[AssetChange]:
    """Entity-level comparison of one collection, matched by ``id``.

    Deleted and modified entities are reported in ``old`` order, followed by
    added entities in ``new`` order.  Unchanged entities are omitted.
    """
    old_by_id = {entity_id(entity): entity for entity in old_entities}
    new_by_id = {entity_id(entity): entity for entity in new_entities}
    changes: list[AssetChange] = []

    for asset_id, old_entity in old_by_id.items():
        new_entity = new_by_id.get(asset_id)
        if new_entity is None:
            changes.append(
                AssetChange(
                    asset_id=asset_id,
                    asset_name=entity_name(old_entity),
                    collection=collection,
                    change_type=ChangeType.DELETED,
                )
            )
            continue

        field_changes = compute_diff(old_entity, new_entity)
        if field_changes:
            changes.append(
                AssetChange(
                    asset_id=asset_id,
                    asset_name=entity_name(new_entity),
                    collection=collection,
                    change_type=ChangeType.MODIFIED,
                    field_changes=field_changes,
                )
            )

    for asset_id, new_entity in new_by_id.items():
        if asset_id not in old_by_id:
            changes.append(
                AssetChange(
                    asset_id=asset_id,
                    asset_name=entity_name(new_entity),
                    collection=collection,
                    change_type=ChangeType.ADDED,
                )
            )

    return changes


def compare_manifests(old: ManifestCollection, new: ManifestCollection) -> list[AssetChange]:
    """Compare every collection present on either side, in sorted name order.

    A collection missing on one side is treated as empty.
    """
    changes: list[AssetChange] = []
    for collection in sorted(set(old) | set(new)):
        changes.extend(compare_collection(old.get(collection, []), new.get(collection, []), collection))
    return changes


def summarize_asset_changes(changes: Sequence[AssetChange]) -> SnapshotDiffSummary:
    summary = SnapshotDiffSummary()
    for change in changes:
        if change.change_type == ChangeType.ADDED:
            summary.added += 1
        elif change.change_type == ChangeType.MODIFIED:
            summary.modified += 1
        else:
            summary.deleted += 1
    summary.total = summary.added + summary.modified + summary.deleted
    return summary


def _validate_manifests(manifests: Mapping[str, Sequence[Mapping[str, Any]]]) -> None:
    for collection, entities in manifests.items():
        seen: set[str] = set()
        for entity in entities:
            asset_id = entity_id(entity)
            if asset_id in seen:
                raise ValueError(f"Duplicate entity id {asset_id!r} in collection {collection!r}")
            seen.add(asset_id)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SnapshotStore:
    """Persist and query whole-collection snapshots.

    Parameters
    ----------
    store:
        Backend holding snapshot bodies and the index.
    max_snapshots:
        Retention limit; the oldest snapshots beyond it are deleted.
    """

    def __init__(self, store: BlobStore, max_snapshots: int = MAX_SNAPSHOTS) -> None:
        if max_snapshots <= 0:
            raise ValueError(f"max_snapshots must be positive, got {max_snapshots}")
        self._store = store
        self._max_snapshots = max_snapshots
        self._lock = threading.RLock()
        self._index: SnapshotIndex | None = None
        self.last_load: LoadResult[SnapshotIndex] | None = None

    # -- Internals -----------------------------------------------------------

    def _load_index(self) -> SnapshotIndex:
        if self._index is None:
            result = load_document(
                self._store,
                SNAPSHOTS_NAMESPACE,
                INDEX_KEY,
                SnapshotIndex,
                SnapshotIndex,
                format_version=INDEX_FORMAT_VERSION,
            )
            self.last_load = result
            self._index = result.document
        return self._index

    def _write_index(self, index: SnapshotIndex) -> None:
        index.updated_at = datetime.now(UTC)
        write_json(self._store, SNAPSHOTS_NAMESPACE, INDEX_KEY, index.model_dump(mode="json"))
        self._index = index

    def _read_snapshot(self, snapshot_id: str) -> Snapshot | None:
        if snapshot_id == INDEX_KEY:
            return None
        raw = self._store.read_text(SNAPSHOTS_NAMESPACE, snapshot_id)
        if raw is None:
            return None
        try:
            return Snapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Failed to read snapshot %s: %s", snapshot_id, exc)
            return None

    # -- Writes --------------------------------------------------------------

    def create_snapshot(self, manifests: ManifestCollection, description: str = "") -> Snapshot:
        """Persist a new snapshot of ``manifests`` and make it current.

        Raises
        ------
        ValueError
            If an entity has no string ``id`` or an id repeats in a collection.
        """
        _validate_manifests(manifests)
        body: ManifestCollection = to_document({name: list(entities) for name, entities in manifests.items()})
        total_assets = count_assets(body)

        with self._lock:
            index = self._load_index().model_copy(deep=True)

            previous = self._read_snapshot(index.current_snapshot_id) if index.current_snapshot_id else None
            if previous is not None:
                changes_from_previous = summarize_asset_changes(compare_manifests(previous.manifests, body)).total
            else:
                if index.current_snapshot_id:
                    logger.warning(
                        "Current snapshot %s is missing; counting every asset as new",
                        index.current_snapshot_id,
                    )
                changes_from_previous = total_assets

            timestamp = datetime.now(UTC)
            snapshot = Snapshot(
                id=generate_id("snap"),
                timestamp=timestamp,
                description=description or f"Snapshot at {timestamp.strftime('%Y-%m-%d %H:%M:%S')} UTC",
                manifests=body,
                metadata=SnapshotMetadata(
                    total_assets=total_assets,
                    changes_from_previous=changes_from_previous,
                    hash=hash_manifests(body),
                ),
            )

            write_json(self._store, SNAPSHOTS_NAMESPACE, snapshot.id, snapshot.model_dump(mode="json"))

            index.snapshots.insert(0, snapshot.summary())
            index.current_snapshot_id = snapshot.id
            evicted = index.snapshots[self._max_snapshots :]
            del index.snapshots[self._max_snapshots :]

            self._write_index(index)
            for old in evicted:
                self._store.delete(SNAPSHOTS_NAMESPACE, old.id)
            if evicted:
                logger.info("Trimmed %d old snapshot(s)", len(evicted))

        logger.info(
            "Created snapshot %s (%d assets, %d changes from previous)",
            snapshot.id,
            total_assets,
            changes_from_previous,
            extra={
                "context": {
                    "snapshot_id": snapshot.id,
                    "total_assets": total_assets,
                    "changes_from_previous": changes_from_previous,
                }
            },
        )
        return snapshot

    def restore_snapshot(self, snapshot_id: str) -> ManifestCollection | None:
        """Re-apply a previous snapshot's content as a new snapshot.

        Returns the restored manifests, or ``None`` if the snapshot is gone.
        """
        with self._lock:
            snapshot = self._read_snapshot(snapshot_id)
            if snapshot is None:
                logger.warning("Snapshot %s not found for restore", snapshot_id)
                return None

            restored = self.create_snapshot(
                snapshot.manifests,
                f"Restored from snapshot: {snapshot.description} ({snapshot.id})",
            )

        logger.info("Restored snapshot %s as %s", snapshot_id, restored.id)
        return copy.deepcopy(snapshot.manifests)

    def delete_snapshot(self, snapshot_id: str) -> bool:
        """Remove one snapshot.  Current falls back to the next-newest one."""
        with self._lock:
            index = self._load_index().model_copy(deep=True)
            position = next(
                (i for i, summary in enumerate(index.snapshots) if summary.id == snapshot_id),
                None,
            )
            if position is None:
                logger.warning("Snapshot %s not found for deletion", snapshot_id)
                return False

            del index.snapshots[position]
            if index.current_snapshot_id == snapshot_id:
                index.current_snapshot_id = index.snapshots[0].id if index.snapshots else None

            self._write_index(index)
            self._store.delete(SNAPSHOTS_NAMESPACE, snapshot_id)

        logger.info("Deleted snapshot %s", snapshot_id)
        return True

    def invalidate(self) -> None:
        """Drop the cached index so the next access re-reads the backend."""
        with self._lock:
            self._index = None

    # -- Reads ---------------------------------------------------------------

    def list_snapshots(self) -> list[SnapshotSummary]:
        """Snapshot summaries, newest first."""
        with self._lock:
            return [summary.model_copy(deep=True) for summary in self._load_index().snapshots]

    def get_snapshot(self, snapshot_id: str) -> Snapshot | None:
        return self._read_snapshot(snapshot_id)

    def get_current_snapshot(self) -> Snapshot | None:
        with self._lock:
            current_id = self._load_index().current_snapshot_id
        if current_id is None:
            return None
        return self._read_snapshot(current_id)

    def compare_snapshots(self, from_snapshot_id: str, to_snapshot_id: str) -> SnapshotDiff | None:
        """Entity-level diff between two snapshots, or ``None`` if either is missing."""
        from_snapshot = self._read_snapshot(from_snapshot_id)
        to_snapshot = self._read_snapshot(to_snapshot_id)

        if from_snapshot is None or to_snapshot is None:
            logger.warning(
                "Snapshot not found for comparison (from=%s found=%s, to=%s found=%s)",
                from_snapshot_id,
                from_snapshot is not None,
                to_snapshot_id,
                to_snapshot is not None,
            )
            return None

        changes = compare_manifests(from_snapshot.manifests, to_snapshot.manifests)
        return SnapshotDiff(
            from_snapshot_id=from_snapshot_id,
            to_snapshot_id=to_snapshot_id,
            summary=summarize_asset_changes(changes),
            changes=changes,
        )

    def is_initialized(self) -> bool:
        with self._lock:
            return bool(self._load_index().snapshots)

    def get_stats(self) -> SnapshotStoreStats:
        with self._lock:
            index = self._load_index()
            snapshots = index.snapshots
            return SnapshotStoreStats(
                initialized=bool(snapshots),
                snapshot_count=len(snapshots),
                current_snapshot_id=index.current_snapshot_id,
                oldest_snapshot=snapshots[-1].model_copy() if snapshots else None,
                newest_snapshot=snapshots[0].model_copy() if snapshots else None,
            )
