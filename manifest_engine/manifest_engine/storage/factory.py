"""Blob store factory.

Provides :func:`create_blob_store` -- the single entry point that turns
:class:`~manifest_engine.config.Settings` into a concrete backend.
"""

from __future__ import annotations

import logging

from manifest_engine.config import Settings, StorageBackend
from manifest_engine.storage.base import BlobStore
from manifest_engine.storage.local import LocalBlobStore
from manifest_engine.storage.memory import InMemoryBlobStore

logger = logging.getLogger(__name__)


def create_blob_store(settings: Settings) -> BlobStore:
    """Instantiate the backend selected by ``settings.storage_backend``."""
    backend = settings.storage_backend
    if backend == StorageBackend.MEMORY:
        store: BlobStore = InMemoryBlobStore()
    elif backend == StorageBackend.SQL:
        # Imported lazily so file-only deployments never touch SQLAlchemy.
        from manifest_engine.storage.sql import SqlBlobStore

        store = SqlBlobStore(settings.database_url)
    else:
        store = LocalBlobStore(settings.versions_dir)

    logger.debug("Using %s blob store", backend.value)
    return store
