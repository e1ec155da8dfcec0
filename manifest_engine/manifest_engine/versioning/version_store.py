"""Per-asset append-only version chains.

Each asset owns one persisted :class:`AssetVersionChain`.  Saving content
whose hash equals the current version's hash is a no-op that returns the
current version; any other save appends a new version linked to its
predecessor and trims the chain from the oldest end.  Rollback is a new save
of the target version's content, so history is never rewritten.

Writes to one asset's chain are serialised through a lock picked from a
fixed pool by asset id.  Empty chains of unknown ids are never cached.  The
in-process chain cache is owned by the store instance and can be dropped with
:meth:`VersionStore.invalidate`.
"""

from __future__ import annotations

import copy
import logging
import threading
import zlib
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from manifest_engine.diff.deep_diff import compute_diff, summarize_changes
from manifest_engine.diff.hashing import hash_record
from manifest_engine.models.diff import VersionDiff
from manifest_engine.models.version import (
    CHAIN_FORMAT_VERSION,
    AssetVersion,
    AssetVersionChain,
    VersionStorageStats,
)
from manifest_engine.storage.base import BlobStore, to_document, write_json
from manifest_engine.versioning.ids import generate_id
from manifest_engine.versioning.recovery import CORRUPT_SUFFIX, LoadResult, LoadStatus, load_document

logger = logging.getLogger(__name__)

VERSIONS_NAMESPACE = "versions"
MAX_VERSIONS_PER_ASSET = 20
LOCK_STRIPES = 64


class VersionStore:
    """Append-only version history for individual assets.

    Parameters
    ----------
    store:
        Backend persisting one chain document per asset id.
    max_versions:
        Maximum versions retained per asset; older versions are trimmed.
    """

    def __init__(self, store: BlobStore, max_versions: int = MAX_VERSIONS_PER_ASSET) -> None:
        if max_versions <= 0:
            raise ValueError(f"max_versions must be positive, got {max_versions}")
        self._store = store
        self._max_versions = max_versions
        self._cache: dict[str, AssetVersionChain] = {}
        self._locks = tuple(threading.RLock() for _ in range(LOCK_STRIPES))
        self.last_load: LoadResult[AssetVersionChain] | None = None

    # -- Internals -----------------------------------------------------------

    def _lock_for(self, asset_id: str) -> threading.RLock:
        # Fixed pool: unknown ids never grow the lock table.
        return self._locks[zlib.crc32(asset_id.encode("utf-8")) % LOCK_STRIPES]

    def _load_chain(self, asset_id: str) -> AssetVersionChain:
        cached = self._cache.get(asset_id)
        if cached is not None:
            return cached

        result = load_document(
            self._store,
            VERSIONS_NAMESPACE,
            asset_id,
            AssetVersionChain,
            lambda: AssetVersionChain(asset_id=asset_id),
            format_version=CHAIN_FORMAT_VERSION,
        )
        self.last_load = result
        # Empty chains of unknown ids are not cached.
        if result.status != LoadStatus.FRESH:
            self._cache[asset_id] = result.document
        return result.document

    def _write_chain(self, chain: AssetVersionChain) -> None:
        write_json(self._store, VERSIONS_NAMESPACE, chain.asset_id, chain.model_dump(mode="json"))
        self._cache[chain.asset_id] = chain

    # -- Writes --------------------------------------------------------------

    def save_version(
        self,
        asset_id: str,
        data: Mapping[str, Any],
        *,
        description: str | None = None,
        created_by: str = "user",
        label: str | None = None,
    ) -> AssetVersion:
        """Record ``data`` as the asset's newest version.

        Returns the existing current version unchanged when ``data`` hashes
        equal to it; otherwise returns the newly appended version.
        """
        document = to_document(dict(data))
        data_hash = hash_record(document)

        with self._lock_for(asset_id):
            chain = self._load_chain(asset_id).model_copy(deep=True)
            current = chain.current

            if current is not None and current.data_hash == data_hash:
                logger.debug("No changes detected for %s, skipping version save", asset_id)
                return current

            now = datetime.now(UTC)
            version = AssetVersion(
                id=generate_id("v"),
                asset_id=asset_id,
                label=label or f"v{chain.versions_created + 1}",
                created_at=now,
                created_by=created_by,
                description=description,
                data=document,
                data_hash=data_hash,
                parent_version_id=current.id if current is not None else None,
            )

            chain.versions.append(version)
            chain.current_version_id = version.id
            chain.versions_created += 1
            chain.updated_at = now

            overflow = len(chain.versions) - self._max_versions
            if overflow > 0:
                del chain.versions[:overflow]
                logger.debug("Trimmed %d old version(s) of %s", overflow, asset_id)

            self._write_chain(chain)

        logger.info(
            "Saved version %s (%s) of %s",
            version.id,
            version.label,
            asset_id,
            extra={"context": {"asset_id": asset_id, "version_id": version.id, "label": version.label}},
        )
        return version.model_copy(deep=True)

    def rollback(self, asset_id: str, target_version_id: str) -> dict[str, Any] | None:
        """Restore an earlier version's content as a new version.

        Returns the restored data, or ``None`` if the target does not exist.
        """
        with self._lock_for(asset_id):
            target = self.get_version(asset_id, target_version_id)
            if target is None:
                logger.warning("Target version %s of %s not found for rollback", target_version_id, asset_id)
                return None

            restored = self.save_version(
                asset_id,
                target.data,
                description=f"Rolled back to {target.label}",
                created_by="system",
            )

        logger.info(
            "Rolled back %s to %s (new version %s)",
            asset_id,
            target_version_id,
            restored.id,
        )
        return copy.deepcopy(restored.data)

    def delete_asset_versions(self, asset_id: str) -> bool:
        """Hard-delete the asset's entire chain.  Irreversible."""
        with self._lock_for(asset_id):
            existed = self._store.delete(VERSIONS_NAMESPACE, asset_id)
            self._cache.pop(asset_id, None)

        logger.info("Deleted all versions for %s", asset_id)
        return existed

    def clear(self) -> None:
        """Delete every persisted chain."""
        for asset_id in self.get_versioned_asset_ids():
            self.delete_asset_versions(asset_id)
        self.invalidate()
        logger.info("Cleared all version data")

    def invalidate(self, asset_id: str | None = None) -> None:
        """Drop cached chains so the next access re-reads the backend."""
        if asset_id is None:
            self._cache.clear()
        else:
            self._cache.pop(asset_id, None)

    # -- Reads ---------------------------------------------------------------

    def get_version_history(
        self,
        asset_id: str,
        *,
        limit: int | None = None,
        include_data: bool = True,
    ) -> list[AssetVersion]:
        """Return the asset's versions newest-first.

        ``include_data=False`` strips each version's payload for lightweight
        listings.
        """
        with self._lock_for(asset_id):
            versions = list(reversed(self._load_chain(asset_id).versions))

        if limit is not None and limit > 0:
            versions = versions[:limit]

        if not include_data:
            return [version.model_copy(update={"data": {}}) for version in versions]
        return [version.model_copy(deep=True) for version in versions]

    def get_version(self, asset_id: str, version_id: str) -> AssetVersion | None:
        with self._lock_for(asset_id):
            version = self._load_chain(asset_id).find(version_id)
        return version.model_copy(deep=True) if version is not None else None

    def get_current_version(self, asset_id: str) -> AssetVersion | None:
        with self._lock_for(asset_id):
            version = self._load_chain(asset_id).current
        return version.model_copy(deep=True) if version is not None else None

    def diff_versions(self, asset_id: str, from_version_id: str, to_version_id: str) -> VersionDiff | None:
        """Field-level diff between two versions of the same asset."""
        from_version = self.get_version(asset_id, from_version_id)
        to_version = self.get_version(asset_id, to_version_id)

        if from_version is None or to_version is None:
            logger.warning(
                "Version not found for diff of %s (from=%s found=%s, to=%s found=%s)",
                asset_id,
                from_version_id,
                from_version is not None,
                to_version_id,
                to_version is not None,
            )
            return None

        changes = compute_diff(from_version.data, to_version.data)
        return VersionDiff(
            from_version_id=from_version_id,
            to_version_id=to_version_id,
            asset_id=asset_id,
            has_changes=bool(changes),
            change_count=len(changes),
            summary=summarize_changes(changes),
            changes=changes,
        )

    def diff_from_current(self, asset_id: str, to_version_id: str) -> VersionDiff | None:
        current = self.get_current_version(asset_id)
        if current is None:
            return None
        return self.diff_versions(asset_id, current.id, to_version_id)

    def has_versions(self, asset_id: str) -> bool:
        return self.get_version_count(asset_id) > 0

    def get_version_count(self, asset_id: str) -> int:
        with self._lock_for(asset_id):
            return len(self._load_chain(asset_id).versions)

    def get_versioned_asset_ids(self) -> list[str]:
        return [
            key
            for key in self._store.list_keys(VERSIONS_NAMESPACE)
            if not key.endswith(CORRUPT_SUFFIX)
        ]

    def get_storage_stats(self) -> VersionStorageStats:
        asset_ids = self.get_versioned_asset_ids()
        return VersionStorageStats(
            total_assets=len(asset_ids),
            total_versions=sum(self.get_version_count(asset_id) for asset_id in asset_ids),
        )
