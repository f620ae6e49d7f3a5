"""Tests for the generative content client."""

import json

import pytest
import requests

from dictionary_editor import GenerationError, GenerativeClient
from dictionary_editor.generator import RESPONSE_SCHEMA


def _entry(headword, gloss="gloss", definition="အဓိပ္ပါယ်"):
    return {
        "headword": headword,
        "source_lang": "en",
        "target_lang": "my",
        "senses": [{
            "sense_id": "s1", "pos": "noun", "gloss": gloss,
            "definition": definition, "examples": [], "tags": ["general"],
        }],
    }


def _body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeResponse:

    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:

    def __init__(self, response=None, error=None):
        self.calls = []
        self._response = response
        self._error = error

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self._error is not None:
            raise self._error
        return self._response


def _client(response=None, error=None, key="test-key"):
    session = FakeSession(response, error)
    return GenerativeClient(key, session=session), session


class TestRequest:

    def test_request_shape(self):
        client, session = _client(FakeResponse(_body("[]")))
        client.generate_words("food", 3)
        url, kwargs = session.calls[0]
        assert url.endswith("/models/gemini-2.5-flash:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        config = kwargs["json"]["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["responseSchema"] == RESPONSE_SCHEMA
        assert config["temperature"] == 0.7
        assert "lexicographer" in kwargs["json"]["systemInstruction"]["parts"][0]["text"]
        assert '"food"' in kwargs["json"]["contents"][0]["parts"][0]["text"]

    def test_define_uses_low_temperature(self):
        client, session = _client(FakeResponse(_body("[]")))
        client.define_word("ghost")
        assert session.calls[0][1]["json"]["generationConfig"]["temperature"] == 0.3

    def test_correction_sends_entry_json(self, make):
        client, session = _client(FakeResponse(_body("[]")))
        client.check_and_correct(make("ghost"))
        prompt = session.calls[0][1]["json"]["contents"][0]["parts"][0]["text"]
        assert '"headword": "ghost"' in prompt
        assert session.calls[0][1]["json"]["generationConfig"]["temperature"] == 0.1


class TestResponses:

    def test_generate_words(self):
        text = json.dumps([_entry("harvest"), _entry("orchard")])
        client, _ = _client(FakeResponse(_body(text)))
        entries = client.generate_words("farming", 2)
        assert [e.headword for e in entries] == ["harvest", "orchard"]

    def test_define_word_returns_first(self):
        client, _ = _client(FakeResponse(_body(json.dumps([_entry("ghost")]))))
        assert client.define_word("ghost").headword == "ghost"

    def test_enrich_examples(self, make):
        client, _ = _client(FakeResponse(_body(json.dumps([_entry("ghost")]))))
        assert client.enrich_examples(make("ghost")).headword == "ghost"

    def test_empty_text(self):
        client, _ = _client(FakeResponse(_body("")))
        assert client.generate_words("x", 1) == []
        assert client.define_word("x") is None

    def test_no_candidates(self):
        client, _ = _client(FakeResponse({"candidates": []}))
        assert client.generate_words("x", 1) == []

    def test_malformed_json_text(self):
        client, _ = _client(FakeResponse(_body("[{not json")))
        assert client.generate_words("x", 1) == []

    def test_body_not_json(self):
        client, _ = _client(FakeResponse(ValueError("no json")))
        assert client.generate_words("x", 1) == []

    def test_invalid_entries_dropped(self):
        text = json.dumps([
            _entry("good"),
            _entry("", gloss="g"),
            {"senses": []},
            _entry("nodef", definition=""),
        ])
        client, _ = _client(FakeResponse(_body(text)))
        assert [e.headword for e in client.generate_words("x", 4)] == ["good"]

    def test_wrongly_typed_fields_dropped(self):
        null_gloss = _entry("nullgloss")
        null_gloss["senses"][0]["gloss"] = None
        int_sense_id = _entry("intid")
        int_sense_id["senses"][0]["sense_id"] = 1
        bad_example = _entry("badex")
        bad_example["senses"][0]["examples"] = ["just text"]
        bad_stats = dict(_entry("badstats"), community_stats=[1, 2])
        text = json.dumps([
            null_gloss, int_sense_id, bad_example, bad_stats,
            dict(_entry("x"), headword=None), _entry("good"),
        ])
        client, _ = _client(FakeResponse(_body(text)))
        assert [e.headword for e in client.generate_words("x", 6)] == ["good"]


class TestFailures:

    def test_missing_key(self):
        client, session = _client(key=None)
        assert not client.configured
        with pytest.raises(GenerationError, match="API key"):
            client.generate_words("x", 1)
        assert session.calls == []

    def test_http_error(self):
        client, _ = _client(FakeResponse({}, status=503))
        with pytest.raises(GenerationError):
            client.define_word("x")

    def test_network_error(self):
        client, _ = _client(error=requests.Timeout("slow"))
        with pytest.raises(GenerationError):
            client.generate_words("x", 1)
