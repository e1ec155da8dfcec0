"""Reconstruct one asset's change history from the snapshot sequence.

Snapshots are walked oldest-first while tracking the asset's state.  Between
consecutive snapshots the asset is classified as added, deleted, modified,
or unchanged.  A deletion resets tracking, so a later reappearance is a fresh
``added`` rather than a resurrection of the old state.

Collections are searched in sorted name order.  Asset ids are expected to be
unique across collections; when an id shows up in more than one collection of
the same snapshot, the first collection wins and a warning is logged.  Pass
``collection`` to make the attribution explicit.
"""

from __future__ import annotations

import logging
from typing import Any

from manifest_engine.diff.deep_diff import compute_diff
from manifest_engine.models.diff import AssetHistoryEntry, FieldChange, HistoryChangeType
from manifest_engine.models.snapshot import Snapshot
from manifest_engine.versioning.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


def find_asset(
    snapshot: Snapshot,
    asset_id: str,
    collection: str | None = None,
) -> dict[str, Any] | None:
    """Locate ``asset_id`` in a snapshot, optionally within one collection."""
    names = [collection] if collection is not None else sorted(snapshot.manifests)
    matches: list[tuple[str, dict[str, Any]]] = []
    for name in names:
        for entity in snapshot.manifests.get(name, []):
            if entity.get("id") == asset_id:
                matches.append((name, entity))
                break

    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            "Asset %s found in multiple collections of snapshot %s (%s); using %s",
            asset_id,
            snapshot.id,
            ", ".join(name for name, _ in matches),
            matches[0][0],
        )
    return matches[0][1]


class HistoryReconstructor:
    """Derive per-asset timelines from a :class:`SnapshotStore`."""

    def __init__(self, snapshots: SnapshotStore) -> None:
        self._snapshots = snapshots

    def get_asset_history(self, asset_id: str, collection: str | None = None) -> list[AssetHistoryEntry]:
        """Return the asset's history newest-first.

        Snapshots whose bodies can no longer be read are skipped.
        """
        history: list[AssetHistoryEntry] = []
        previous: dict[str, Any] | None = None

        for summary in reversed(self._snapshots.list_snapshots()):
            snapshot = self._snapshots.get_snapshot(summary.id)
            if snapshot is None:
                continue

            current = find_asset(snapshot, asset_id, collection)
            field_changes: list[FieldChange] = []

            if previous is None and current is None:
                continue
            if previous is None:
                change_type = HistoryChangeType.ADDED
            elif current is None:
                change_type = HistoryChangeType.DELETED
            else:
                field_changes = compute_diff(previous, current)
                change_type = HistoryChangeType.MODIFIED if field_changes else HistoryChangeType.UNCHANGED

            history.append(
                AssetHistoryEntry(
                    snapshot_id=summary.id,
                    timestamp=summary.timestamp,
                    description=summary.description,
                    change_type=change_type,
                    field_changes=field_changes,
                )
            )
            previous = current

        history.reverse()
        return history
