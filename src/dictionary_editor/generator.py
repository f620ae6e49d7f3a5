"""Client for the generative content service (Gemini ``generateContent``).

Every call asks for a JSON array of entries matching :data:`RESPONSE_SCHEMA`.
Transport failures raise :class:`GenerationError`; an empty or malformed
body yields an empty result instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from dictionary_editor.exceptions import GenerationError, ValidationError
from dictionary_editor.models import DictionaryEntry, entry_from_dict, entry_to_dict
from dictionary_editor.validator import has_errors, validate_entry

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

SYSTEM_INSTRUCTION = """\
You are an expert English-Myanmar lexicographer.
Generate dictionary entries strictly adhering to the JSON schema provided.

CRITICAL RULES:
1. Headwords: MUST be lowercase (e.g. 'cap', 'apple') unless they are proper nouns (e.g. 'Paris').
2. Polysemy: if a word has multiple meanings, the most common meaning MUST be sense 1.
3. Tags: ALWAYS include 'tags' describing the context (e.g. 'general', 'slang', 'legal', 'food').
4. Translations: Myanmar definitions must be natural and use proper Unicode.
"""

_STRING = {"type": "STRING"}

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "headword": {
                "type": "STRING",
                "description": "The word in English (lowercase unless proper noun)",
            },
            "source_lang": {"type": "STRING", "enum": ["en"]},
            "target_lang": {"type": "STRING", "enum": ["my"]},
            "phonetic_ipa": {"type": "STRING", "description": "IPA pronunciation"},
            "senses": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "sense_id": _STRING,
                        "pos": {"type": "STRING", "description": "Part of speech"},
                        "gloss": {"type": "STRING", "description": "Short English gloss"},
                        "definition": {"type": "STRING", "description": "Full Myanmar definition"},
                        "examples": {
                            "type": "ARRAY",
                            "items": {
                                "type": "OBJECT",
                                "properties": {
                                    "src": _STRING,
                                    "tgt": _STRING,
                                    "tgt_roman": _STRING,
                                },
                                "required": ["src", "tgt"],
                            },
                        },
                        "tags": {"type": "ARRAY", "items": _STRING},
                    },
                    "required": ["sense_id", "pos", "gloss", "definition", "examples", "tags"],
                },
            },
        },
        "required": ["headword", "source_lang", "target_lang", "senses"],
    },
}


class GenerativeClient:
    """Thin wrapper over the ``generateContent`` REST call.

    Args:
        api_key: Service key. Calls raise :class:`GenerationError` when empty.
        model: Model name inserted into the endpoint path.
        timeout: Per-request timeout in seconds.
        session: Optional ``requests.Session`` (tests pass a fake).
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        timeout: float = 60,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    # -- public calls -------------------------------------------------------

    def generate_words(self, topic: str, count: int) -> list[DictionaryEntry]:
        prompt = (
            f'Generate {count} unique, intermediate-to-advanced English words '
            f'related to the topic: "{topic}".\n'
            "If a word is commonly known in general English, include its general "
            "definition first.\n"
            "The target language must be Myanmar ('my'). Do not repeat words."
        )
        return self._generate(prompt, temperature=0.7)

    def define_word(self, word: str) -> DictionaryEntry | None:
        prompt = (
            f'Define the English word: "{word}".\n'
            "Provide a detailed dictionary entry with up to 3 senses.\n"
            "The target language must be Myanmar ('my').\n"
            "Return a JSON array containing a single entry."
        )
        return _first(self._generate(prompt, temperature=0.3))

    def check_and_correct(self, entry: DictionaryEntry) -> DictionaryEntry | None:
        prompt = (
            f"Review and correct this dictionary entry JSON: {_entry_json(entry)}.\n"
            "1. Fix any typos in English or Myanmar.\n"
            "2. Make the Myanmar translations natural and accurate.\n"
            "3. Make sure the IPA is correct.\n"
            "4. Fill any missing or empty field.\n"
            "Return the corrected entry as a JSON array containing one object."
        )
        return _first(self._generate(prompt, temperature=0.1))

    def enrich_examples(self, entry: DictionaryEntry) -> DictionaryEntry | None:
        prompt = (
            f"Take this dictionary entry: {_entry_json(entry)}.\n"
            "For EVERY sense in the entry, add 2-3 new, high-quality examples.\n"
            "Do not remove existing examples unless they are incorrect.\n"
            "Return the updated entry as a JSON array containing one object."
        )
        return _first(self._generate(prompt, temperature=0.7))

    # -- transport ----------------------------------------------------------

    def _generate(self, prompt: str, *, temperature: float) -> list[DictionaryEntry]:
        if not self._api_key:
            raise GenerationError("API key is missing. Cannot generate entries.")

        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
                "temperature": temperature,
            },
        }
        try:
            resp = self._session.post(
                ENDPOINT.format(model=self.model),
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.error("Generation request failed: %s", e)
            raise GenerationError(f"Generation request failed: {e}") from e
        except ValueError as e:
            logger.warning("Generation response is not JSON: %s", e)
            return []

        return _parse_entries(_response_text(payload))


def _entry_json(entry: DictionaryEntry) -> str:
    return json.dumps(entry_to_dict(entry), ensure_ascii=False)


def _first(entries: list[DictionaryEntry]) -> DictionaryEntry | None:
    return entries[0] if entries else None


def _response_text(payload: Any) -> str | None:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return None
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    return text or None


def _parse_entries(text: str | None) -> list[DictionaryEntry]:
    if not text:
        return []
    try:
        data = json.loads(text)
    except ValueError:
        logger.warning("Generated text is not valid JSON")
        return []
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        logger.warning("Generated JSON is %s, expected a list", type(data).__name__)
        return []

    entries = []
    for item in data:
        try:
            entry = entry_from_dict(item)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("Dropping generated entry: %s", e)
            continue
        if has_errors(validate_entry(entry)):
            logger.warning("Dropping invalid generated entry %r", entry.headword)
            continue
        entries.append(entry)
    return entries
