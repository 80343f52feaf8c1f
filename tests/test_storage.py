"""Tests for taskflow.data.storage and the key-value adapters."""

import json
from unittest.mock import MagicMock

import pytest

from taskflow.adapters.memory_store import MemoryKeyValueStore
from taskflow.adapters.sqlite_store import SQLiteKeyValueStore
from taskflow.core.events import EventBus, Topic
from taskflow.data import keys
from taskflow.data.storage import StorageAccessor
from taskflow.ports.storage_port import StorageError


# ---------------------------------------------------------------------------
# StorageAccessor reads
# ---------------------------------------------------------------------------


class TestTolerantReads:
    def test_absent_key_returns_fallback(self, storage):
        assert storage.read("missing", []) == []

    def test_fallback_is_a_copy(self, storage):
        fallback = {"a": []}
        value = storage.read("missing", fallback)
        value["a"].append(1)
        assert fallback == {"a": []}

    def test_malformed_json_returns_fallback(self, kv, storage):
        kv.set("broken", "{not json")
        assert storage.read("broken", {"ok": True}) == {"ok": True}

    def test_json_null_returns_fallback(self, kv, storage):
        kv.set("nothing", "null")
        assert storage.read("nothing", []) == []

    def test_undecodable_number_returns_fallback(self, kv, storage):
        kv.set(keys.EXPENSES, "[" + "1" * 5000 + "]")
        assert storage.read_list(keys.EXPENSES) == []

    def test_deep_nesting_returns_fallback(self, kv, storage):
        kv.set("deep", "[" * 100000 + "]" * 100000)
        assert storage.read("deep", {"ok": True}) == {"ok": True}

    def test_failing_backend_returns_fallback(self):
        backend = MagicMock()
        backend.get.side_effect = StorageError("disk gone")
        accessor = StorageAccessor(backend)
        assert accessor.read("anything", []) == []
        assert accessor.has("anything") is False

    def test_read_list_rejects_maps(self, storage):
        storage.write("shape", {"2026-03-18": []})
        assert storage.read_list("shape") == []

    def test_read_map_rejects_lists(self, storage):
        storage.write("shape", [1, 2])
        assert storage.read_map("shape") == {}


# ---------------------------------------------------------------------------
# StorageAccessor writes
# ---------------------------------------------------------------------------


class TestWrites:
    def test_write_then_read(self, storage):
        storage.write("bucket", [{"id": "1", "text": "café"}])
        assert storage.read("bucket") == [{"id": "1", "text": "café"}]

    def test_write_stores_json(self, kv, storage):
        storage.write("bucket", {"x": 1})
        assert json.loads(kv.get("bucket")) == {"x": 1}

    def test_write_notifies_entity_and_storage_topics(self, storage, bus):
        todos, everything = [], []
        bus.subscribe(Topic.TODOS, todos.append)
        bus.subscribe(Topic.STORAGE, everything.append)

        storage.write(keys.TASKS, [])

        assert todos == [keys.TASKS]
        assert everything == [keys.TASKS]

    def test_unknown_key_notifies_storage_only(self, storage, bus):
        seen = []
        bus.subscribe(Topic.STORAGE, seen.append)
        storage.write("misc", 1)
        assert seen == ["misc"]

    def test_failed_write_raises(self):
        backend = MagicMock()
        backend.set.side_effect = StorageError("quota exceeded")
        accessor = StorageAccessor(backend)
        with pytest.raises(StorageError):
            accessor.write("bucket", [])

    def test_merge_is_shallow(self, storage):
        storage.write("cfg", {"a": 1, "b": {"x": 1}})
        merged = storage.merge("cfg", {"b": {"y": 2}, "c": 3})
        assert merged == {"a": 1, "b": {"y": 2}, "c": 3}
        assert storage.read("cfg") == merged

    def test_remove(self, storage, bus):
        seen = []
        bus.subscribe(Topic.NOTES, seen.append)
        storage.write(keys.NOTES, [])
        storage.remove(keys.NOTES)
        assert storage.has(keys.NOTES) is False
        assert seen == [keys.NOTES, keys.NOTES]


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class TestMemoryKeyValueStore:
    def test_basic_operations(self):
        store = MemoryKeyValueStore({"b": "2"})
        store.set("a", "1")
        assert store.get("a") == "1"
        assert store.keys() == ["a", "b"]
        store.delete("a")
        store.delete("never-there")
        assert store.get("a") is None


class TestSQLiteKeyValueStore:
    def test_set_get(self, sqlite_kv):
        sqlite_kv.set("k", '{"v": 1}')
        assert sqlite_kv.get("k") == '{"v": 1}'

    def test_missing_is_none(self, sqlite_kv):
        assert sqlite_kv.get("nope") is None

    def test_upsert(self, sqlite_kv):
        sqlite_kv.set("k", "1")
        sqlite_kv.set("k", "2")
        assert sqlite_kv.get("k") == "2"
        assert sqlite_kv.keys() == ["k"]

    def test_delete(self, sqlite_kv):
        sqlite_kv.set("k", "1")
        sqlite_kv.delete("k")
        sqlite_kv.delete("k")
        assert sqlite_kv.get("k") is None

    def test_survives_reopen(self, tmp_db_path):
        SQLiteKeyValueStore(db_path=tmp_db_path).set("k", "persisted")
        assert SQLiteKeyValueStore(db_path=tmp_db_path).get("k") == "persisted"

    def test_in_memory_database(self):
        store = SQLiteKeyValueStore(db_path=":memory:")
        store.set("k", "v")
        assert store.get("k") == "v"

    def test_accessor_over_sqlite(self, sqlite_kv):
        accessor = StorageAccessor(sqlite_kv, EventBus())
        accessor.write(keys.GOALS, [{"id": "g1"}])
        assert accessor.read_list(keys.GOALS) == [{"id": "g1"}]
