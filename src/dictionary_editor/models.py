"""Domain model dataclasses and enums for dictionary-editor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from dictionary_editor.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Language(str, Enum):
    """Language tags an entry can be written in or translated to."""

    ENGLISH = "en"
    MYANMAR = "my"


class VoteDirection(str, Enum):
    """Direction of a community vote on an entry."""

    UP = "up"
    DOWN = "down"


class SuggestionStatus(str, Enum):
    """Review state of a proposed edit."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EditOperation(str, Enum):
    """Type of mutation recorded in the edit history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ValidationSeverity(str, Enum):
    """Severity level for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Example:
    """A usage example: source sentence plus its translation."""

    src: str
    tgt: str
    src_roman: str | None = None
    tgt_roman: str | None = None


@dataclass(frozen=True, slots=True)
class Sense:
    """One distinct meaning of a headword."""

    sense_id: str
    pos: str
    gloss: str
    definition: str
    usage_note: str | None = None
    tags: tuple[str, ...] = ()
    examples: tuple[Example, ...] = ()


@dataclass(frozen=True, slots=True)
class CommunityStats:
    """Aggregate vote counts for an entry."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def total(self) -> int:
        return self.upvotes + self.downvotes


@dataclass(frozen=True, slots=True)
class DictionaryEntry:
    """A dictionary entry (headword + ordered senses)."""

    headword: str
    source_lang: Language = Language.ENGLISH
    target_lang: Language = Language.MYANMAR
    senses: tuple[Sense, ...] = ()
    id: str | None = None
    phonetic_ipa: str | None = None
    romanization: str | None = None
    community_stats: CommunityStats | None = None


@dataclass(frozen=True, slots=True)
class WordSuggestion:
    """A user-proposed replacement for an entry, awaiting review."""

    original_word_id: str | None
    user_id: str
    proposed_content: DictionaryEntry
    status: SuggestionStatus = SuggestionStatus.PENDING


@dataclass(frozen=True, slots=True)
class SuggestionResult:
    """Outcome of submitting a suggestion to the remote backend."""

    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Counts of entries added and updated by a merge."""

    added: int
    updated: int


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry recording one change."""

    id: int
    entity_type: str
    entity_id: str
    field_name: str | None
    operation: str
    old_value: str | None
    new_value: str | None
    timestamp: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    entity_type: str
    entity_id: str
    message: str
    details: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# JSON wire form
# ---------------------------------------------------------------------------

def _language(value: Any, field: str) -> Language:
    try:
        return Language(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field}: {value!r}") from e


def _text(data: dict[str, Any], key: str, where: str, default: str | None = "") -> str | None:
    """String field *key*; missing or null gives *default*."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(
            f"{where}: '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _items(data: dict[str, Any], key: str, where: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(
            f"{where}: '{key}' must be a list, got {type(value).__name__}"
        )
    return value


def _example_from_dict(data: Any, where: str) -> Example:
    if not isinstance(data, dict):
        raise ValidationError(f"{where} must be a mapping")
    return Example(
        src=_text(data, "src", where),
        tgt=_text(data, "tgt", where),
        src_roman=_text(data, "src_roman", where, None),
        tgt_roman=_text(data, "tgt_roman", where, None),
    )


def _sense_from_dict(data: Any, position: int) -> Sense:
    where = f"Sense #{position}"
    if not isinstance(data, dict):
        raise ValidationError(f"{where} must be a mapping")
    tags = _items(data, "tags", where)
    if not all(isinstance(t, str) for t in tags):
        raise ValidationError(f"{where}: tags must be strings")
    return Sense(
        sense_id=_text(data, "sense_id", where) or f"s{position}",
        pos=_text(data, "pos", where),
        gloss=_text(data, "gloss", where),
        definition=_text(data, "definition", where),
        usage_note=_text(data, "usage_note", where, None),
        tags=tuple(tags),
        examples=tuple(
            _example_from_dict(ex, f"{where} example #{i}")
            for i, ex in enumerate(_items(data, "examples", where), start=1)
        ),
    )


def stats_from_dict(data: Any) -> CommunityStats | None:
    """Build stats from ``{"upvotes": .., "downvotes": ..}``; missing counts are 0."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError(
            f"community_stats must be a mapping, got {type(data).__name__}"
        )
    try:
        return CommunityStats(
            upvotes=int(data.get("upvotes") or 0),
            downvotes=int(data.get("downvotes") or 0),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid vote count in community_stats: {e}") from e


def entry_from_dict(data: Any) -> DictionaryEntry:
    """Build a :class:`DictionaryEntry` from its JSON form.

    Wrongly typed fields at any depth raise :class:`ValidationError`.
    Headword emptiness is not checked here; see :mod:`dictionary_editor.validator`.
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Entry must be a mapping, got {type(data).__name__}"
        )
    if "headword" not in data:
        raise ValidationError("Entry is missing required field 'headword'")
    if not isinstance(data["headword"], str):
        raise ValidationError(
            f"Headword must be a string, got {type(data['headword']).__name__}"
        )
    senses = _items(data, "senses", "Entry")
    return DictionaryEntry(
        headword=data["headword"],
        source_lang=_language(data.get("source_lang", "en"), "source_lang"),
        target_lang=_language(data.get("target_lang", "my"), "target_lang"),
        senses=tuple(
            _sense_from_dict(s, i) for i, s in enumerate(senses, start=1)
        ),
        id=_text(data, "id", "Entry", None),
        phonetic_ipa=_text(data, "phonetic_ipa", "Entry", None),
        romanization=_text(data, "romanization", "Entry", None),
        community_stats=stats_from_dict(data.get("community_stats")),
    )


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def entry_to_dict(entry: DictionaryEntry) -> dict[str, Any]:
    """Serialize an entry to its JSON form (``None`` fields omitted)."""
    senses = []
    for sense in entry.senses:
        senses.append(_drop_none({
            "sense_id": sense.sense_id,
            "pos": sense.pos,
            "gloss": sense.gloss,
            "definition": sense.definition,
            "usage_note": sense.usage_note,
            "examples": [
                _drop_none({
                    "src": ex.src,
                    "tgt": ex.tgt,
                    "src_roman": ex.src_roman,
                    "tgt_roman": ex.tgt_roman,
                })
                for ex in sense.examples
            ],
            "tags": list(sense.tags),
        }))
    stats = None
    if entry.community_stats is not None:
        stats = {
            "upvotes": entry.community_stats.upvotes,
            "downvotes": entry.community_stats.downvotes,
        }
    return _drop_none({
        "id": entry.id,
        "headword": entry.headword,
        "source_lang": entry.source_lang.value,
        "target_lang": entry.target_lang.value,
        "phonetic_ipa": entry.phonetic_ipa,
        "romanization": entry.romanization,
        "senses": senses,
        "community_stats": stats,
    })
