"""Export history models.

An export record ties a push of manifests to the game runtime to the exact
asset versions it contained, so that an export can later be marked as
rolled back.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from manifest_engine.models.diff import ChangeType

EXPORT_FORMAT_VERSION = 1


class ExportStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


class ExportedAsset(BaseModel):
    """One asset included in an export."""

    asset_id: str
    asset_name: str = ""
    version_id: str
    change_type: ChangeType
    previous_version_id: str | None = Field(
        default=None,
        description="Version that was live before this export, used for rollback.",
    )


class ExportRecord(BaseModel):
    id: str
    exported_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    exported_by: str = "user"
    collections: list[str] = Field(default_factory=list)
    asset_count: int = 0
    assets: list[ExportedAsset] = Field(default_factory=list)
    status: ExportStatus = ExportStatus.COMPLETED
    error_message: str | None = None
    notes: str | None = None


class ExportHistory(BaseModel):
    """Persisted export log, newest record first."""

    format_version: int = EXPORT_FORMAT_VERSION
    records: list[ExportRecord] = Field(default_factory=list)
    last_export_at: datetime | None = None
    total_exports: int = 0
