"""Import pipeline for dictionary-editor."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dictionary_editor.exceptions import DataImportError, ValidationError
from dictionary_editor.models import DictionaryEntry, ImportResult, entry_from_dict

if TYPE_CHECKING:
    from dictionary_editor.store import DictionaryStore

logger = logging.getLogger(__name__)


def load_entries(source: str | Path) -> list[DictionaryEntry]:
    """Read a JSON export file (an array of entries)."""
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")

    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise DataImportError(f"Failed to parse JSON: {e}") from e

    return parse_entries(data)


def parse_entries(data: Any) -> list[DictionaryEntry]:
    """Convert a decoded JSON array into entries."""
    if not isinstance(data, list):
        raise DataImportError(
            f"Import root must be a JSON array, got {type(data).__name__}"
        )
    entries = []
    for i, item in enumerate(data, start=1):
        try:
            entries.append(entry_from_dict(item))
        except (ValidationError, TypeError, ValueError) as e:
            raise DataImportError(f"Entry #{i}: {e}") from e
    return entries


def import_file(store: DictionaryStore, source: str | Path) -> ImportResult:
    """Merge the entries of an export file into *store*."""
    entries = load_entries(source)
    logger.info("Importing %d entries from %s", len(entries), source)
    return store.add_entries(entries)
