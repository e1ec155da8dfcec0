"""Blob store protocol for persisting engine documents.

The engine persists a handful of JSON documents (version chains, snapshot
bodies, the snapshot index, export history) addressed by ``namespace`` and
``key``.  Any backend that can read, write, delete, and list text blobs
satisfies :class:`BlobStore`; consumer code depends on the protocol, never on
a concrete backend.

Backends report I/O failures as :class:`StorageError`.  A missing blob is
not an error: ``read_text`` returns ``None``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter

logger = logging.getLogger(__name__)

_DOCUMENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


class StorageError(Exception):
    """The backing store failed to read, write, or delete a blob."""

    def __init__(self, operation: str, namespace: str, key: str | None, cause: BaseException) -> None:
        self.operation = operation
        self.namespace = namespace
        self.key = key
        self.cause = cause
        target = f"{namespace}/{key}" if key is not None else namespace
        super().__init__(f"Storage {operation} failed for {target}: {cause}")


@runtime_checkable
class BlobStore(Protocol):
    """Read/write/delete of named text blobs grouped by namespace."""

    def read_text(self, namespace: str, key: str) -> str | None:
        """Return the blob's contents, or ``None`` if it does not exist."""
        ...

    def write_text(self, namespace: str, key: str, text: str) -> None:
        """Create or replace a blob, creating any parent containers."""
        ...

    def delete(self, namespace: str, key: str) -> bool:
        """Delete a blob.  Returns ``False`` if it did not exist."""
        ...

    def list_keys(self, namespace: str) -> list[str]:
        """Return every key in ``namespace``, sorted."""
        ...


def to_document(value: Any) -> Any:
    """Return a fresh copy of ``value`` in the JSON form it takes once persisted.

    Dates become ISO-8601 strings and tuples become lists, so in-memory
    results compare equal to what a later read returns.
    """
    return _DOCUMENT_ADAPTER.dump_python(value, mode="json")


def dumps_document(payload: Any) -> str:
    """Serialise a document with sorted keys and stable indentation."""
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False, default=str)


def write_json(store: BlobStore, namespace: str, key: str, payload: Any) -> None:
    store.write_text(namespace, key, dumps_document(payload))


def fail(operation: str, namespace: str, key: str | None, exc: BaseException) -> StorageError:
    """Log a backend failure with context and return the error to raise."""
    logger.error(
        "Storage %s failed for %s/%s: %s",
        operation,
        namespace,
        key,
        exc,
        extra={"context": {"operation": operation, "namespace": namespace, "key": key}},
    )
    return StorageError(operation, namespace, key, exc)
