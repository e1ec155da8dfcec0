"""In-memory blob store for tests and ephemeral engines."""

from __future__ import annotations

import threading


class InMemoryBlobStore:
    """Dict-backed :class:`~manifest_engine.storage.base.BlobStore`."""

    def __init__(self) -> None:
        self._blobs: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def read_text(self, namespace: str, key: str) -> str | None:
        with self._lock:
            return self._blobs.get((namespace, key))

    def write_text(self, namespace: str, key: str, text: str) -> None:
        with self._lock:
            self._blobs[(namespace, key)] = text

    def delete(self, namespace: str, key: str) -> bool:
        with self._lock:
            return self._blobs.pop((namespace, key), None) is not None

    def list_keys(self, namespace: str) -> list[str]:
        with self._lock:
            return sorted(key for ns, key in self._blobs if ns == namespace)

    def __len__(self) -> int:
        return len(self._blobs)
