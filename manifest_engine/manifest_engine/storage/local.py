"""File-system blob store.

Layout::

    <root>/<namespace>/<percent-encoded key>.json

Keys are percent-encoded so arbitrary entity ids (including ``/`` or ``..``)
always map to a single file inside the namespace directory.  Writes go to a
temporary sibling first and are moved into place, so a crash mid-write never
leaves a truncated document behind.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import quote, unquote

from manifest_engine.storage.base import fail

logger = logging.getLogger(__name__)

BLOB_SUFFIX = ".json"


def encode_key(key: str) -> str:
    encoded = quote(key, safe="-_")
    # "." and ".." would otherwise survive quoting as path components.
    return encoded.replace(".", "%2E")


def decode_key(filename: str) -> str:
    return unquote(filename)


class LocalBlobStore:
    """Persist blobs as JSON files under a root directory.

    Parameters
    ----------
    root:
        Directory holding one sub-directory per namespace.  Created lazily on
        the first write.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, namespace: str, key: str) -> Path:
        return self._root / encode_key(namespace) / f"{encode_key(key)}{BLOB_SUFFIX}"

    def read_text(self, namespace: str, key: str) -> str | None:
        path = self._path(namespace, key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise fail("read", namespace, key, exc) from exc

    def write_text(self, namespace: str, key: str, text: str) -> None:
        path = self._path(namespace, key)
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise fail("write", namespace, key, exc) from exc

    def delete(self, namespace: str, key: str) -> bool:
        path = self._path(namespace, key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise fail("delete", namespace, key, exc) from exc
        return True

    def list_keys(self, namespace: str) -> list[str]:
        directory = self._root / encode_key(namespace)
        try:
            names = [entry.name for entry in directory.iterdir() if entry.is_file()]
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise fail("list", namespace, None, exc) from exc
        return sorted(
            decode_key(name[: -len(BLOB_SUFFIX)])
            for name in names
            if name.endswith(BLOB_SUFFIX)
        )
