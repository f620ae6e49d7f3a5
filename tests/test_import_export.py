"""Tests for JSON import and export."""

import datetime
import json

import pytest

from dictionary_editor import (
    CommunityStats,
    DataImportError,
    DictionaryStore,
    ExportError,
    SnapshotCache,
    export_store,
    import_file,
    load_entries,
)
from dictionary_editor.exporter import default_export_name, dump_entries


class TestExport:

    def test_export_is_get_all(self, store, tmp_path):
        path = export_store(store, tmp_path / "out.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert [d["headword"] for d in data] == [e.headword for e in store.get_all()]
        assert data[0]["community_stats"] == {"upvotes": 42, "downvotes": 1}

    def test_export_keeps_myanmar_text_readable(self, store, tmp_path):
        path = export_store(store, tmp_path / "out.json")
        assert "ပန်းသီး" in path.read_text(encoding="utf-8")

    def test_export_reflects_votes(self, store, tmp_path):
        apple = store.get_entry("apple")
        store.vote_for_word(apple.id, "u1", "up")
        path = export_store(store, tmp_path / "out.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data[0]["community_stats"]["upvotes"] == 43

    def test_default_name(self):
        assert default_export_name(datetime.date(2024, 3, 9)) == "geenmy_dictionary_2024-03-09.json"

    def test_unwritable_destination(self, store, tmp_path):
        with pytest.raises(ExportError):
            dump_entries(store.get_all(), tmp_path / "missing" / "out.json")


class TestImport:

    def test_round_trip_is_idempotent(self, store, tmp_path):
        before = store.get_all()
        path = export_store(store, tmp_path / "out.json")
        result = import_file(store, path)
        assert (result.added, result.updated) == (0, 0)
        assert store.get_all() == before

    def test_round_trip_restores_vote_stats(self, store, tmp_path):
        path = export_store(store, tmp_path / "out.json")
        fresh = DictionaryStore(SnapshotCache(), defaults=())
        result = import_file(fresh, path)
        assert result.added == len(store)
        assert fresh.get_entry("apple").community_stats == CommunityStats(42, 1)
        fresh.close()

    def test_import_preserves_order(self, store, tmp_path):
        path = export_store(store, tmp_path / "out.json")
        fresh = DictionaryStore(SnapshotCache(), defaults=())
        import_file(fresh, path)
        # each new entry is prepended, so the file order is reversed
        assert [e.headword for e in fresh.get_all()] == [
            e.headword for e in reversed(store.get_all())
        ]
        fresh.close()

    def test_missing_file(self, store, tmp_path):
        with pytest.raises(FileNotFoundError):
            import_file(store, tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(DataImportError, match="parse"):
            load_entries(path)

    def test_root_must_be_array(self, tmp_path):
        path = tmp_path / "obj.json"
        path.write_text('{"headword": "apple"}', encoding="utf-8")
        with pytest.raises(DataImportError, match="array"):
            load_entries(path)

    def test_entry_without_headword(self, tmp_path):
        path = tmp_path / "nohead.json"
        path.write_text('[{"headword": "ok"}, {"senses": []}]', encoding="utf-8")
        with pytest.raises(DataImportError, match="#2"):
            load_entries(path)
