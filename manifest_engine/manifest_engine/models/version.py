"""Per-asset version models.

Every version stores the *full* asset state rather than a delta, so any
version is directly readable without replaying its ancestors.  Versions form
a singly linked, append-only chain through ``parent_version_id``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

# Bumped whenever the persisted chain layout changes incompatibly.
CHAIN_FORMAT_VERSION = 1


class AssetVersion(BaseModel):
    """Immutable record of one historical state of a single asset."""

    id: str = Field(..., min_length=1, description="Unique version identifier.")
    asset_id: str = Field(..., min_length=1, description="Asset this version belongs to.")
    label: str = Field(..., description="Human label such as 'v3'; not globally unique.")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_by: str = "user"
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict, description="Full asset state.")
    data_hash: str = Field(..., description="Content hash of ``data``.")
    parent_version_id: str | None = Field(
        default=None,
        description="Immediately preceding version, or None for the first one.",
    )


class AssetVersionChain(BaseModel):
    """Persisted version chain for one asset, stored oldest-first."""

    format_version: int = CHAIN_FORMAT_VERSION
    asset_id: str
    versions: list[AssetVersion] = Field(default_factory=list)
    current_version_id: str | None = None
    versions_created: int = Field(
        default=0,
        description="Versions ever appended, including trimmed ones; drives labels.",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def find(self, version_id: str) -> AssetVersion | None:
        for version in self.versions:
            if version.id == version_id:
                return version
        return None

    @property
    def current(self) -> AssetVersion | None:
        if self.current_version_id is None:
            return None
        return self.find(self.current_version_id)


class VersionStorageStats(BaseModel):
    """Aggregate counters across every persisted version chain."""

    total_assets: int = 0
    total_versions: int = 0
