"""Pluggable persistence backends for engine documents."""

from manifest_engine.storage.base import BlobStore, StorageError, to_document, write_json
from manifest_engine.storage.factory import create_blob_store
from manifest_engine.storage.local import LocalBlobStore
from manifest_engine.storage.memory import InMemoryBlobStore

__all__ = [
    "BlobStore",
    "InMemoryBlobStore",
    "LocalBlobStore",
    "StorageError",
    "create_blob_store",
    "to_document",
    "write_json",
]
