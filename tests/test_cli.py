"""Tests for the dictionary-editor command line."""

import json

import pytest

from dictionary_editor import DictionaryStore
from dictionary_editor.cli import main

_ENV_VARS = (
    "DICTIONARY_EDITOR_DB", "SUPABASE_URL", "SUPABASE_ANON_KEY",
    "GEMINI_API_KEY", "API_KEY", "DICTIONARY_EDITOR_MODEL",
    "DICTIONARY_EDITOR_LOG_LEVEL",
)


@pytest.fixture
def run(tmp_path, monkeypatch):
    """Run the CLI against a fresh cache file; returns the exit code."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    db = tmp_path / "dict.db"

    def _run(*args):
        return main(["--db", str(db), *args])

    _run.db = db
    return _run


class TestReadCommands:

    def test_search(self, run, capsys):
        assert run("search", "fruit") == 0
        assert "apple" in capsys.readouterr().out

    def test_search_no_match(self, run, capsys):
        assert run("search", "zzzz") == 1

    def test_show(self, run, capsys):
        assert run("show", "Algorithm") == 0
        out = capsys.readouterr().out
        assert "Computational process" in out
        assert "(+89/-2)" in out

    def test_show_missing(self, run):
        assert run("show", "nothing") == 1

    def test_next(self, run, capsys):
        assert run("next") == 0
        # first default entry with no votes
        assert capsys.readouterr().out.startswith("beautiful")

    def test_no_command_prints_help(self, run, capsys):
        assert main([]) == 1


class TestWriteCommands:

    def test_vote_and_retract(self, run, capsys):
        with DictionaryStore(run.db) as s:
            apple_id = s.get_entry("apple").id
        assert run("vote", apple_id, "u1", "up") == 0
        assert "voted up (+43/-1)" in capsys.readouterr().out
        assert run("vote", apple_id, "u1", "up") == 0
        assert "vote retracted (+42/-1)" in capsys.readouterr().out

    def test_export_and_import(self, run, tmp_path, capsys):
        out_file = tmp_path / "out.json"
        assert run("export", str(out_file)) == 0
        assert len(json.loads(out_file.read_text(encoding="utf-8"))) == 7
        assert run("import", str(out_file)) == 0
        assert "Added 0, updated 0" in capsys.readouterr().out

    def test_import_bad_file(self, run, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{}", encoding="utf-8")
        assert run("import", str(bad)) == 1
        assert "array" in capsys.readouterr().err

    def test_validate(self, run, tmp_path):
        good = tmp_path / "good.json"
        good.write_text('[{"headword": "x", "senses": [{"gloss": "g", "definition": "d"}]}]')
        bad = tmp_path / "bad.json"
        bad.write_text('[{"headword": ""}]')
        assert run("validate", str(good)) == 0
        assert run("validate", str(bad)) == 1

    def test_delete_with_confirmation(self, run, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "y")
        assert run("delete", "run") == 0
        with DictionaryStore(run.db) as s:
            assert "run" not in [e.headword for e in s.get_all()]

    def test_delete_aborted(self, run, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert run("delete", "run") == 1
        with DictionaryStore(run.db) as s:
            assert s.get_entry("run")

    def test_history(self, run, capsys):
        run("delete", "--yes", "run")
        capsys.readouterr()
        assert run("history") == 0
        assert "DELETE" in capsys.readouterr().out

    def test_generate_without_key(self, run, capsys):
        assert run("generate", "food") == 1
        assert "API key" in capsys.readouterr().err


class TestBatchCommands:

    def test_batch_validate_and_apply(self, run, tmp_path, capsys):
        path = tmp_path / "changes.yaml"
        path.write_text(
            "changes:\n"
            "  - operation: delete_entry\n"
            "    headword: run\n",
            encoding="utf-8",
        )
        assert run("batch", "validate", str(path)) == 0
        assert run("batch", "apply", "--yes", str(path)) == 0
        assert "Success: 1" in capsys.readouterr().out

    def test_batch_parse_error(self, run, tmp_path, capsys):
        path = tmp_path / "changes.yaml"
        path.write_text("changes: [\n", encoding="utf-8")
        assert run("batch", "validate", str(path)) == 1
        assert "PARSE ERROR" in capsys.readouterr().out

    def test_batch_invalid_request_not_applied(self, run, tmp_path):
        path = tmp_path / "changes.yaml"
        path.write_text(
            "changes:\n"
            "  - operation: update_entry\n"
            "    headword: nothing\n"
            "    entry: {headword: nothing}\n",
            encoding="utf-8",
        )
        assert run("batch", "apply", "--yes", str(path)) == 1
