"""Tests for the snapshot cache and schema handling."""

import pytest

from dictionary_editor import DatabaseError, SnapshotCache, SnapshotCorruptError
from dictionary_editor import db as _db


class TestSchema:

    def test_meta_schema_version(self, cache):
        row = cache.connection.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
        assert row["value"] == _db.SCHEMA_VERSION

    def test_tables_exist(self, cache):
        names = {
            r["name"] for r in cache.connection.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
        }
        assert {"meta", "kv_store", "edit_history"} <= names

    def test_incompatible_version_rejected(self, tmp_path):
        path = tmp_path / "cache.db"
        with SnapshotCache(path) as c:
            with c.connection:
                c.connection.execute(
                    "UPDATE meta SET value = '0.1' WHERE key = 'schema_version'"
                )
        with pytest.raises(DatabaseError, match="schema version"):
            SnapshotCache(path)


class TestSnapshotCache:

    def test_load_missing_key(self, cache):
        assert cache.load("nothing") is None

    def test_save_and_load(self, cache):
        cache.save("k", [{"headword": "ပန်းသီး"}])
        assert cache.load("k") == [{"headword": "ပန်းသီး"}]

    def test_save_overwrites(self, cache):
        cache.save("k", [1])
        cache.save("k", [2, 3])
        assert cache.load("k") == [2, 3]

    def test_non_ascii_stored_unescaped(self, cache):
        cache.save("k", "မြန်မာ")
        assert "မြန်မာ" in _db.read_value(cache.connection, "k")

    def test_corrupt_value_raises(self, cache):
        cache.save_raw("k", "{not json")
        with pytest.raises(SnapshotCorruptError):
            cache.load("k")

    def test_delete(self, cache):
        cache.save("k", 1)
        cache.delete("k")
        assert cache.load("k") is None

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "cache.db"
        with SnapshotCache(path) as c:
            c.save(_db.ENTRIES_KEY, [{"headword": "apple"}])
        with SnapshotCache(path) as c:
            assert c.load(_db.ENTRIES_KEY) == [{"headword": "apple"}]
