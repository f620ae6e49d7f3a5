"""Export pipeline for dictionary-editor."""

from __future__ import annotations

import datetime
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from dictionary_editor.exceptions import ExportError
from dictionary_editor.models import DictionaryEntry, entry_to_dict

if TYPE_CHECKING:
    from dictionary_editor.store import DictionaryStore

logger = logging.getLogger(__name__)


def default_export_name(today: datetime.date | None = None) -> str:
    today = today or datetime.date.today()
    return f"geenmy_dictionary_{today.isoformat()}.json"


def dumps_entries(entries: Iterable[DictionaryEntry]) -> str:
    """Serialize entries to the export format (pretty JSON array)."""
    return json.dumps(
        [entry_to_dict(e) for e in entries], ensure_ascii=False, indent=2,
    )


def dump_entries(
    entries: Iterable[DictionaryEntry],
    destination: str | Path,
) -> Path:
    """Write entries to *destination*, replacing it atomically."""
    destination = Path(destination)
    text = dumps_entries(entries)
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=destination.parent, prefix=".export-", suffix=".json",
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.write("\n")
        os.replace(tmp_path, destination)
    except OSError as e:
        raise ExportError(f"Cannot write {destination}: {e}") from e
    return destination


def export_store(
    store: DictionaryStore,
    destination: str | Path | None = None,
) -> Path:
    """Write ``store.get_all()`` to *destination* (default: dated file name)."""
    destination = Path(destination) if destination else Path(default_export_name())
    entries = store.get_all()
    dump_entries(entries, destination)
    logger.info("Exported %d entries to %s", len(entries), destination)
    return destination
