"""Entry validation rules for dictionary-editor."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable

from dictionary_editor.models import (
    DictionaryEntry,
    Language,
    ValidationResult,
    ValidationSeverity,
)

_SENSE_ID = re.compile(r"^s[1-9][0-9]*$")

_E = ValidationSeverity.ERROR.value
_W = ValidationSeverity.WARNING.value


def validate_entries(entries: Iterable[DictionaryEntry]) -> list[ValidationResult]:
    """Run every rule over *entries*."""
    results: list[ValidationResult] = []
    for position, entry in enumerate(entries, start=1):
        results.extend(validate_entry(entry, position=position))
    return results


def validate_entry(
    entry: DictionaryEntry, *, position: int | None = None
) -> list[ValidationResult]:
    """Run every rule over a single entry."""
    entity_id = _entity_id(entry, position)
    results: list[ValidationResult] = []
    results.extend(_val_ent_001(entry, entity_id))
    results.extend(_val_ent_002(entry, entity_id))
    results.extend(_val_ent_003(entry, entity_id))
    results.extend(_val_sen_001(entry, entity_id))
    results.extend(_val_sen_002(entry, entity_id))
    results.extend(_val_sen_003(entry, entity_id))
    results.extend(_val_vot_001(entry, entity_id))
    return results


def has_errors(results: Iterable[ValidationResult]) -> bool:
    return any(r.severity == _E for r in results)


def _is_text(value: object) -> bool:
    """Non-blank string."""
    return isinstance(value, str) and bool(value.strip())


def _entity_id(entry: DictionaryEntry, position: int | None) -> str:
    if _is_text(entry.headword):
        return entry.headword
    if entry.id:
        return entry.id
    return f"#{position}" if position is not None else "<unnamed>"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _val_ent_001(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Empty headword."""
    if _is_text(entry.headword):
        return []
    return [ValidationResult(
        rule_id="VAL-ENT-001", severity=_E, entity_type="entry",
        entity_id=entity_id, message="Headword is empty",
    )]


def _val_ent_002(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Language tag outside the supported set."""
    results = []
    for field in ("source_lang", "target_lang"):
        value = getattr(entry, field)
        if not isinstance(value, Language):
            results.append(ValidationResult(
                rule_id="VAL-ENT-002", severity=_E, entity_type="entry",
                entity_id=entity_id,
                message=f"Unsupported {field}: {value!r}",
                details={"field": field},
            ))
    return results


def _val_ent_003(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Entry without senses."""
    if entry.senses:
        return []
    return [ValidationResult(
        rule_id="VAL-ENT-003", severity=_W, entity_type="entry",
        entity_id=entity_id, message="Entry has no senses",
    )]


def _val_sen_001(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Duplicate sense_id within one entry."""
    counts = Counter(s.sense_id for s in entry.senses if isinstance(s.sense_id, str))
    return [
        ValidationResult(
            rule_id="VAL-SEN-001", severity=_W, entity_type="sense",
            entity_id=f"{entity_id}/{sense_id}",
            message=f"sense_id {sense_id!r} used {n} times",
        )
        for sense_id, n in counts.items() if n > 1
    ]


def _val_sen_002(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """sense_id not of the form s<N>."""
    return [
        ValidationResult(
            rule_id="VAL-SEN-002", severity=_W, entity_type="sense",
            entity_id=f"{entity_id}/{s.sense_id}",
            message=f"Malformed sense_id {s.sense_id!r} (expected s<N>)",
        )
        for s in entry.senses if not _is_text(s.sense_id) or not _SENSE_ID.match(s.sense_id)
    ]


def _val_sen_003(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Sense with empty gloss or definition."""
    results = []
    for s in entry.senses:
        missing = [f for f in ("gloss", "definition") if not _is_text(getattr(s, f))]
        if missing:
            results.append(ValidationResult(
                rule_id="VAL-SEN-003", severity=_E, entity_type="sense",
                entity_id=f"{entity_id}/{s.sense_id}",
                message=f"Sense is missing {', '.join(missing)}",
                details={"fields": missing},
            ))
    return results


def _val_vot_001(entry: DictionaryEntry, entity_id: str) -> list[ValidationResult]:
    """Negative community stats."""
    stats = entry.community_stats
    if stats is None or (stats.upvotes >= 0 and stats.downvotes >= 0):
        return []
    return [ValidationResult(
        rule_id="VAL-VOT-001", severity=_E, entity_type="entry",
        entity_id=entity_id,
        message=f"Negative vote counts: +{stats.upvotes}/-{stats.downvotes}",
    )]
