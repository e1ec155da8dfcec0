"""Tagged loading of persisted engine documents.

A persisted document (snapshot index, version chain, export history) can be
in one of three states when read:

* ``OK`` -- it parsed and validated.
* ``FRESH`` -- it does not exist yet; the caller starts from an empty one.
* ``RESET`` -- it exists but is unreadable (invalid JSON, schema violation,
  or a ``format_version`` mismatch).  The raw blob is quarantined under
  ``<key>.corrupt`` and the caller continues from an empty document.

Resets favour availability over surfacing corruption, but the result is
explicit so callers and logs can tell a fresh install from a recovery.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from manifest_engine.storage.base import BlobStore

logger = logging.getLogger(__name__)

CORRUPT_SUFFIX = ".corrupt"

DocumentT = TypeVar("DocumentT", bound=BaseModel)


class LoadStatus(str, Enum):
    OK = "ok"
    FRESH = "fresh"
    RESET = "reset"


@dataclass(frozen=True)
class LoadResult(Generic[DocumentT]):
    """Outcome of loading one persisted document."""

    status: LoadStatus
    document: DocumentT
    reason: str | None = None

    @property
    def recovered(self) -> bool:
        return self.status == LoadStatus.RESET


def load_document(
    store: BlobStore,
    namespace: str,
    key: str,
    model: type[DocumentT],
    empty: Callable[[], DocumentT],
    format_version: int | None = None,
) -> LoadResult[DocumentT]:
    """Read and validate a document, recovering from corruption.

    Parameters
    ----------
    store:
        Backend holding the document.
    namespace, key:
        Address of the document.
    model:
        Pydantic model the document must validate against.
    empty:
        Factory for the empty document returned on ``FRESH``/``RESET``.
    format_version:
        When given, a document whose ``format_version`` differs is reset.

    Raises
    ------
    StorageError
        If the backend itself fails.  Only parse/validation problems are
        recovered here.
    """
    raw = store.read_text(namespace, key)
    if raw is None:
        return LoadResult(LoadStatus.FRESH, empty())

    try:
        document = model.model_validate_json(raw)
    except ValidationError as exc:
        reason = f"unreadable document: {exc.error_count()} validation error(s)"
    else:
        actual = getattr(document, "format_version", format_version)
        if format_version is None or actual == format_version:
            return LoadResult(LoadStatus.OK, document)
        reason = f"format version mismatch: expected {format_version}, found {actual}"

    store.write_text(namespace, f"{key}{CORRUPT_SUFFIX}", raw)
    logger.warning(
        "Reset %s/%s (%s); raw blob quarantined as %s%s",
        namespace,
        key,
        reason,
        key,
        CORRUPT_SUFFIX,
        extra={"context": {"namespace": namespace, "key": key, "reason": reason}},
    )
    return LoadResult(LoadStatus.RESET, empty(), reason)
