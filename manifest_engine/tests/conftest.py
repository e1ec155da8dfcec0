"""Shared fixtures for manifest engine tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from manifest_engine.config import Settings, StorageBackend
from manifest_engine.engine import ManifestEngine
from manifest_engine.storage.local import LocalBlobStore
from manifest_engine.storage.memory import InMemoryBlobStore


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep MANIFEST_* variables and stray .env files out of every test."""
    for name in list(os.environ):
        if name.startswith("MANIFEST_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def local_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "versions")


@pytest.fixture
def settings() -> Settings:
    return Settings(storage_backend=StorageBackend.MEMORY)


@pytest.fixture
def engine(memory_store: InMemoryBlobStore, settings: Settings) -> ManifestEngine:
    return ManifestEngine(memory_store, settings)

