"""Tests for the blob store backends and factory."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from manifest_engine.config import Settings, StorageBackend
from manifest_engine.storage.base import BlobStore, StorageError, write_json
from manifest_engine.storage.factory import create_blob_store
from manifest_engine.storage.local import LocalBlobStore, decode_key, encode_key
from manifest_engine.storage.memory import InMemoryBlobStore
from manifest_engine.storage.sql import SqlBlobStore


@pytest.fixture(params=["memory", "local", "sql"])
def blob_store(request: pytest.FixtureRequest, tmp_path: Path) -> BlobStore:
    if request.param == "memory":
        return InMemoryBlobStore()
    if request.param == "local":
        return LocalBlobStore(tmp_path / "blobs")
    return SqlBlobStore("sqlite://")


# ---------------------------------------------------------------------------
# Protocol contract, exercised against every backend
# ---------------------------------------------------------------------------


class TestBlobStoreContract:
    def test_satisfies_protocol(self, blob_store: BlobStore):
        assert isinstance(blob_store, BlobStore)

    def test_missing_blob_reads_none(self, blob_store: BlobStore):
        assert blob_store.read_text("snapshots", "missing") is None

    def test_write_then_read(self, blob_store: BlobStore):
        blob_store.write_text("snapshots", "snap_1", '{"a": 1}')
        assert blob_store.read_text("snapshots", "snap_1") == '{"a": 1}'

    def test_overwrite(self, blob_store: BlobStore):
        blob_store.write_text("versions", "a", "one")
        blob_store.write_text("versions", "a", "two")
        assert blob_store.read_text("versions", "a") == "two"

    def test_namespaces_are_isolated(self, blob_store: BlobStore):
        blob_store.write_text("versions", "a", "v")
        assert blob_store.read_text("snapshots", "a") is None
        assert blob_store.list_keys("snapshots") == []

    def test_delete(self, blob_store: BlobStore):
        blob_store.write_text("versions", "a", "v")
        assert blob_store.delete("versions", "a") is True
        assert blob_store.delete("versions", "a") is False
        assert blob_store.read_text("versions", "a") is None

    def test_list_keys_sorted(self, blob_store: BlobStore):
        for key in ("b", "a", "index.corrupt", "weird/../id"):
            blob_store.write_text("versions", key, "x")
        assert blob_store.list_keys("versions") == sorted(["a", "b", "index.corrupt", "weird/../id"])

    def test_write_json_is_stable(self, blob_store: BlobStore):
        write_json(blob_store, "exports", "history", {"b": 1, "a": [1, 2]})
        text = blob_store.read_text("exports", "history")
        assert json.loads(text) == {"a": [1, 2], "b": 1}
        assert text.index('"a"') < text.index('"b"')


# ---------------------------------------------------------------------------
# LocalBlobStore specifics
# ---------------------------------------------------------------------------


class TestLocalBlobStore:
    def test_creates_parent_directories(self, tmp_path: Path):
        store = LocalBlobStore(tmp_path / "nested" / "deep")
        store.write_text("snapshots", "index", "{}")
        assert (tmp_path / "nested" / "deep" / "snapshots" / "index.json").exists()

    def test_keys_cannot_escape_namespace(self, tmp_path: Path):
        store = LocalBlobStore(tmp_path / "root")
        store.write_text("versions", "../../escape", "x")
        assert not (tmp_path / "escape.json").exists()
        files = list((tmp_path / "root" / "versions").iterdir())
        assert len(files) == 1

    def test_key_encoding_round_trip(self):
        for key in ("plain", "with space", "a/b", "..", "x.corrupt", "100%"):
            assert decode_key(encode_key(key)) == key
            assert "/" not in encode_key(key)
            assert "." not in encode_key(key)

    def test_missing_namespace_lists_empty(self, tmp_path: Path):
        assert LocalBlobStore(tmp_path / "none").list_keys("versions") == []

    def test_io_failure_raises_storage_error(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = LocalBlobStore(blocker)
        with pytest.raises(StorageError) as exc_info:
            store.write_text("versions", "a", "x")
        assert exc_info.value.operation == "write"
        assert exc_info.value.namespace == "versions"
        assert exc_info.value.key == "a"


# ---------------------------------------------------------------------------
# SqlBlobStore specifics
# ---------------------------------------------------------------------------


class TestSqlBlobStore:
    def test_file_database_creates_parent(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "state.db"
        store = SqlBlobStore(f"sqlite:///{db_path}")
        store.write_text("versions", "a", "x")
        assert db_path.exists()
        assert SqlBlobStore(f"sqlite:///{db_path}").read_text("versions", "a") == "x"
        store.dispose()


# ---------------------------------------------------------------------------
# create_blob_store
# ---------------------------------------------------------------------------


class TestCreateBlobStore:
    def test_memory(self):
        store = create_blob_store(Settings(storage_backend=StorageBackend.MEMORY))
        assert isinstance(store, InMemoryBlobStore)

    def test_local(self, tmp_path: Path):
        store = create_blob_store(Settings(storage_backend=StorageBackend.LOCAL, versions_dir=tmp_path / "v"))
        assert isinstance(store, LocalBlobStore)
        assert store.root == tmp_path / "v"

    def test_sql(self):
        store = create_blob_store(Settings(storage_backend=StorageBackend.SQL, database_url="sqlite://"))
        assert isinstance(store, SqlBlobStore)
