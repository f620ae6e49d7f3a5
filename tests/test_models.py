"""Tests for the entry model and its JSON form."""

import pytest

from dictionary_editor import (
    CommunityStats,
    DictionaryEntry,
    Language,
    ValidationError,
    entry_from_dict,
    entry_to_dict,
)


SAMPLE = {
    "id": "e-1",
    "headword": "ghost",
    "source_lang": "en",
    "target_lang": "my",
    "phonetic_ipa": "/ɡoʊst/",
    "senses": [
        {
            "sense_id": "s1",
            "pos": "noun",
            "gloss": "Spirit of a dead person",
            "definition": "သရဲ။",
            "examples": [{"src": "A ghost appeared.", "tgt": "သရဲ ပေါ်လာတယ်။"}],
            "tags": ["general"],
        },
        {
            "pos": "verb",
            "gloss": "To ignore someone",
            "definition": "လျစ်လျူရှုသည်။",
            "tags": ["slang"],
        },
    ],
    "community_stats": {"upvotes": 3, "downvotes": 1},
}


class TestEntryFromDict:

    def test_full_entry(self):
        entry = entry_from_dict(SAMPLE)
        assert entry.headword == "ghost"
        assert entry.source_lang is Language.ENGLISH
        assert entry.target_lang is Language.MYANMAR
        assert len(entry.senses) == 2
        assert entry.senses[0].examples[0].tgt == "သရဲ ပေါ်လာတယ်။"
        assert entry.senses[0].tags == ("general",)
        assert entry.community_stats == CommunityStats(3, 1)

    def test_missing_sense_id_defaults_to_position(self):
        entry = entry_from_dict(SAMPLE)
        assert entry.senses[1].sense_id == "s2"

    def test_missing_stats_is_none(self):
        entry = entry_from_dict({"headword": "x"})
        assert entry.community_stats is None
        assert entry.senses == ()

    def test_partial_stats_default_to_zero(self):
        entry = entry_from_dict({"headword": "x", "community_stats": {"upvotes": 2}})
        assert entry.community_stats == CommunityStats(2, 0)

    def test_missing_headword_raises(self):
        with pytest.raises(ValidationError, match="headword"):
            entry_from_dict({"senses": []})

    def test_non_mapping_raises(self):
        with pytest.raises(ValidationError):
            entry_from_dict(["apple"])

    def test_unknown_language_raises(self):
        with pytest.raises(ValidationError, match="target_lang"):
            entry_from_dict({"headword": "x", "target_lang": "fr"})

    @pytest.mark.parametrize("data, fragment", [
        ({"headword": None}, "Headword"),
        ({"headword": "x", "senses": "run fast"}, "senses"),
        ({"headword": "x", "senses": [{"examples": ["bad"]}]}, "example"),
        ({"headword": "x", "senses": [{"examples": {"src": "a"}}]}, "examples"),
        ({"headword": "x", "senses": [{"gloss": 3}]}, "gloss"),
        ({"headword": "x", "senses": [{"sense_id": 1}]}, "sense_id"),
        ({"headword": "x", "senses": [{"tags": [1]}]}, "tags"),
        ({"headword": "x", "community_stats": [1, 2]}, "community_stats"),
        ({"headword": "x", "community_stats": {"upvotes": "many"}}, "community_stats"),
    ])
    def test_wrongly_typed_nested_fields_raise(self, data, fragment):
        with pytest.raises(ValidationError, match=fragment):
            entry_from_dict(data)

    def test_null_text_fields_become_empty(self):
        entry = entry_from_dict({"headword": "x", "senses": [{"gloss": None, "pos": None}]})
        assert entry.senses[0].gloss == ""
        assert entry.senses[0].pos == ""


class TestEntryToDict:

    def test_round_trip_preserves_content(self):
        entry = entry_from_dict(SAMPLE)
        assert entry_from_dict(entry_to_dict(entry)) == entry

    def test_none_fields_are_omitted(self):
        data = entry_to_dict(DictionaryEntry(headword="bare"))
        assert "id" not in data
        assert "community_stats" not in data
        assert "phonetic_ipa" not in data
        assert data["source_lang"] == "en"
        assert data["target_lang"] == "my"
        assert data["senses"] == []

    def test_stats_total(self):
        assert CommunityStats(4, 3).total == 7
