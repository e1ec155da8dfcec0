"""Manifest engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class PlatformEnv(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class StorageBackend(str, Enum):
    LOCAL = "local"
    MEMORY = "memory"
    SQL = "sql"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables with MANIFEST_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="MANIFEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: PlatformEnv = PlatformEnv.DEV
    debug: bool = False

    # Storage
    storage_backend: StorageBackend = StorageBackend.LOCAL
    versions_dir: Path = Path(".manifest_engine/versions")
    database_url: str = "sqlite:///.manifest_engine/state.db"

    # Retention
    max_snapshots: int = Field(default=100, gt=0)
    max_versions_per_asset: int = Field(default=20, gt=0)
    max_export_records: int = Field(default=100, gt=0)

    # Logging
    structured_logging: bool = False
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings for environment: %s (storage=%s)",
            settings.env.value,
            settings.storage_backend.value,
        )

    return settings
