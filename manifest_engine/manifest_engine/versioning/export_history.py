"""Log of manifest exports.

Each export records which asset versions were pushed so the push can later be
marked as rolled back.  Records are kept newest-first and capped.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import UTC, datetime

from manifest_engine.models.export import (
    EXPORT_FORMAT_VERSION,
    ExportedAsset,
    ExportHistory,
    ExportRecord,
    ExportStatus,
)
from manifest_engine.storage.base import BlobStore, write_json
from manifest_engine.versioning.ids import generate_id
from manifest_engine.versioning.recovery import LoadResult, load_document

logger = logging.getLogger(__name__)

EXPORTS_NAMESPACE = "exports"
HISTORY_KEY = "history"
MAX_EXPORT_RECORDS = 100


class ExportHistoryStore:
    """Persist and query the export log.

    Parameters
    ----------
    store:
        Backend holding the single export history document.
    max_records:
        Number of most recent records retained; ``total_exports`` keeps
        counting past it.
    """

    def __init__(self, store: BlobStore, max_records: int = MAX_EXPORT_RECORDS) -> None:
        if max_records <= 0:
            raise ValueError(f"max_records must be positive, got {max_records}")
        self._store = store
        self._max_records = max_records
        self._lock = threading.Lock()
        self._history: ExportHistory | None = None
        self.last_load: LoadResult[ExportHistory] | None = None

    def _load(self) -> ExportHistory:
        if self._history is None:
            result = load_document(
                self._store,
                EXPORTS_NAMESPACE,
                HISTORY_KEY,
                ExportHistory,
                ExportHistory,
                format_version=EXPORT_FORMAT_VERSION,
            )
            self.last_load = result
            self._history = result.document
        return self._history

    def _write(self, history: ExportHistory) -> None:
        write_json(self._store, EXPORTS_NAMESPACE, HISTORY_KEY, history.model_dump(mode="json"))
        self._history = history

    def record_export(
        self,
        collections: Sequence[str],
        assets: Sequence[ExportedAsset],
        *,
        exported_by: str = "user",
        notes: str | None = None,
    ) -> ExportRecord:
        """Append a completed export to the log."""
        now = datetime.now(UTC)
        record = ExportRecord(
            id=generate_id("exp"),
            exported_at=now,
            exported_by=exported_by,
            collections=list(collections),
            asset_count=len(assets),
            assets=list(assets),
            status=ExportStatus.COMPLETED,
            notes=notes,
        )

        with self._lock:
            history = self._load().model_copy(deep=True)
            history.records.insert(0, record)
            del history.records[self._max_records :]
            history.last_export_at = now
            history.total_exports += 1
            self._write(history)

        logger.info("Recorded export %s (%d assets)", record.id, record.asset_count)
        return record.model_copy(deep=True)

    def get_export_history(self, limit: int | None = None) -> ExportHistory:
        """Return a copy of the log, trimmed to the newest ``limit`` records."""
        with self._lock:
            history = self._load().model_copy(deep=True)
        if limit is not None and limit > 0:
            history.records = history.records[:limit]
        return history

    def get_export_record(self, export_id: str) -> ExportRecord | None:
        """Return one record by id, or ``None`` if it is unknown or trimmed."""
        with self._lock:
            for record in self._load().records:
                if record.id == export_id:
                    return record.model_copy(deep=True)
        return None

    def mark_export_rolled_back(self, export_id: str) -> bool:
        """Flag an export as rolled back.  Returns ``False`` if it is unknown."""
        with self._lock:
            history = self._load().model_copy(deep=True)
            record = next((r for r in history.records if r.id == export_id), None)
            if record is None:
                logger.warning("Export %s not found to mark as rolled back", export_id)
                return False
            record.status = ExportStatus.ROLLED_BACK
            self._write(history)

        logger.info("Marked export %s as rolled back", export_id)
        return True

    def invalidate(self) -> None:
        """Drop the cached log so the next access re-reads the backend."""
        with self._lock:
            self._history = None
