"""Bundled default dataset used to seed an empty or unreadable cache."""

from __future__ import annotations

import functools
import json
from importlib import resources

from dictionary_editor.models import DictionaryEntry, entry_from_dict

_RESOURCE = "default_entries.json"


@functools.lru_cache(maxsize=1)
def default_entries() -> tuple[DictionaryEntry, ...]:
    """The bundled seed entries, in their shipped order."""
    text = (
        (resources.files("dictionary_editor") / "data" / _RESOURCE)
        .read_text(encoding="utf-8")
    )
    return tuple(entry_from_dict(item) for item in json.loads(text))
