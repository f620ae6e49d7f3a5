"""Tests for the local edit history."""

import json

import pytest

from dictionary_editor import EntityNotFoundError
from dictionary_editor import history as _hist


class TestHistoryRecording:

    def test_added_entry_records_create(self, store, make):
        store.add_entries([make("kite")])
        hist = store.get_history(entity_type="entry", entity_id="kite")
        assert [h.operation for h in hist] == ["CREATE"]

    def test_updated_entry_records_update(self, store, make):
        store.add_entries([make("apple", ("Company", "y"))])
        hist = store.get_history(entity_type="entry", entity_id="apple", operation="UPDATE")
        assert len(hist) == 1

    def test_vote_records_counts(self, store):
        apple = store.get_entry("apple")
        store.vote_for_word(apple.id, "u1", "up")
        (rec,) = store.get_history(entity_type="vote", entity_id=apple.id)
        assert rec.field_name == "up"
        assert json.loads(rec.old_value) == {"upvotes": 42, "downvotes": 1}
        assert json.loads(rec.new_value) == {"upvotes": 43, "downvotes": 1}

    def test_delete_records_history(self, store):
        store.delete_entry("run")
        hist = store.get_history(entity_type="entry", entity_id="run")
        assert any(h.operation == "DELETE" for h in hist)

    def test_admin_update_records_old_and_new(self, store, make):
        store.update_entry("run", make("run", ("Sprint", "z")))
        (rec,) = store.get_history(entity_type="entry", entity_id="run", operation="UPDATE")
        assert json.loads(rec.old_value)["senses"][0]["gloss"] == "Move quickly"
        assert json.loads(rec.new_value)["senses"][0]["gloss"] == "Sprint"

    def test_failed_update_leaves_no_history(self, store, make):
        with pytest.raises(EntityNotFoundError):
            store.update_entry("missing", make("missing"))
        assert store.get_history(entity_id="missing") == []


class TestQueryHistory:

    def test_limit_keeps_newest(self, cache):
        conn = cache.connection
        for i in range(5):
            _hist.record_create(conn, "entry", f"w{i}")
        conn.commit()
        records = _hist.query_history(conn, limit=2)
        assert [r.entity_id for r in records] == ["w3", "w4"]

    def test_filter_by_operation(self, cache):
        conn = cache.connection
        _hist.record_create(conn, "entry", "a")
        _hist.record_delete(conn, "entry", "a")
        conn.commit()
        records = _hist.query_history(conn, operation="DELETE")
        assert [r.operation for r in records] == ["DELETE"]

    def test_since(self, cache):
        conn = cache.connection
        _hist.record_create(conn, "entry", "a")
        conn.commit()
        assert _hist.query_history(conn, since="9999-01-01T00:00:00") == []
        assert len(_hist.query_history(conn, since="2000-01-01T00:00:00")) == 1
