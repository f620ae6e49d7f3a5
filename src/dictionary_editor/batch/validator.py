"""
Validation for batch change requests.

Provides both schema validation (required fields, types, entry rules) and
referential validation (headwords exist in the store, import files exist).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..exceptions import ValidationError as EntryValidationError
from ..merge import merge_key
from ..models import ValidationSeverity, entry_from_dict
from ..validator import validate_entry
from .schema import (
    MAX_GENERATE_COUNT,
    REQUIRED_FIELDS,
    Change,
    ChangeRequest,
    OperationType,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)

if TYPE_CHECKING:
    from ..store import DictionaryStore

_OPAQUE_OPERATIONS = {OperationType.IMPORT_FILE.value, OperationType.GENERATE.value}


def validate_change_request(
    request: ChangeRequest,
    store: Optional[DictionaryStore] = None,
) -> ValidationResult:
    """Validate a change request.

    Args:
        request: The change request to validate
        store: If given, headword references are checked against it

    Returns:
        ValidationResult with errors and warnings
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    known: Optional[Dict[str, str]] = None
    if store is not None:
        known = {}
        for entry in store.get_all():
            known.setdefault(merge_key(entry.headword), entry.headword)

    for i, change in enumerate(request.changes):
        change_errors, change_warnings = _validate_change(change, i, request, known)
        errors.extend(change_errors)
        warnings.extend(change_warnings)
        if change.operation in _OPAQUE_OPERATIONS:
            # Headwords these add are unknown until execution.
            known = None

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_change(
    change: Change,
    index: int,
    request: ChangeRequest,
    known: Optional[Dict[str, str]],
) -> tuple[List[ValidationError], List[ValidationWarning]]:
    """Validate a single change operation.

    *known* maps lowercased headwords to their stored spelling as the batch
    would leave them, so a change may refer to an entry added earlier in the
    same request. Update and delete match the stored spelling exactly.
    """
    errors: List[ValidationError] = []
    warnings: List[ValidationWarning] = []

    valid_operations = {op.value for op in OperationType}
    if change.operation not in valid_operations:
        errors.append(_error(
            change, index, "operation",
            f"Unknown operation '{change.operation}'. Valid: {', '.join(sorted(valid_operations))}",
        ))
        return errors, warnings

    for field in REQUIRED_FIELDS.get(change.operation, []):
        if field not in change.params or change.params[field] is None:
            errors.append(_error(change, index, field, f"Missing required field '{field}'"))
    if errors:
        return errors, warnings

    op = change.operation

    if op == OperationType.ADD_ENTRIES.value:
        entries = change.params["entries"]
        if not isinstance(entries, list) or not entries:
            errors.append(_error(change, index, "entries", "Field 'entries' must be a non-empty list"))
        else:
            for n, data in enumerate(entries):
                headword = _check_entry(change, index, f"entries[{n}]", data, errors, warnings)
                if headword and known is not None:
                    known.setdefault(merge_key(headword), headword)

    elif op == OperationType.IMPORT_FILE.value:
        path = change.params["path"]
        if not isinstance(path, str):
            errors.append(_error(change, index, "path", "Field 'path' must be a string"))
        elif not request.resolve_path(path).is_file():
            errors.append(_error(change, index, "path", f"File not found: {path}"))

    elif op == OperationType.UPDATE_ENTRY.value:
        headword = change.params["headword"]
        if not _check_headword_field(change, index, headword, errors):
            return errors, warnings
        if known is not None and known.get(merge_key(headword)) != headword:
            errors.append(_error(change, index, "headword", f"Entry '{headword}' not found"))
        new_headword = _check_entry(change, index, "entry", change.params["entry"], errors, warnings)
        if new_headword and known is not None:
            known.pop(merge_key(headword), None)
            known.setdefault(merge_key(new_headword), new_headword)

    elif op == OperationType.DELETE_ENTRY.value:
        headword = change.params["headword"]
        if not _check_headword_field(change, index, headword, errors):
            return errors, warnings
        if known is not None:
            if known.get(merge_key(headword)) != headword:
                warnings.append(_warning(change, index, f"Entry '{headword}' not found; nothing to delete"))
            else:
                known.pop(merge_key(headword))

    elif op == OperationType.GENERATE.value:
        topic = change.params["topic"]
        if not isinstance(topic, str) or not topic.strip():
            errors.append(_error(change, index, "topic", "Field 'topic' must be a non-empty string"))
        count = change.params.get("count")
        if count is not None and (
            isinstance(count, bool) or not isinstance(count, int)
            or not 1 <= count <= MAX_GENERATE_COUNT
        ):
            errors.append(_error(
                change, index, "count",
                f"Field 'count' must be an integer between 1 and {MAX_GENERATE_COUNT}",
            ))

    return errors, warnings


def _check_headword_field(
    change: Change, index: int, headword: Any, errors: List[ValidationError],
) -> bool:
    if not isinstance(headword, str) or not headword.strip():
        errors.append(_error(change, index, "headword", "Field 'headword' must be a non-empty string"))
        return False
    return True


def _check_entry(
    change: Change,
    index: int,
    field: str,
    data: Any,
    errors: List[ValidationError],
    warnings: List[ValidationWarning],
) -> Optional[str]:
    """Parse and rule-check one entry payload; return its headword if usable."""
    try:
        entry = entry_from_dict(data)
    except (EntryValidationError, TypeError, ValueError) as e:
        errors.append(_error(change, index, field, str(e)))
        return None

    ok = True
    for result in validate_entry(entry):
        message = f"{result.rule_id} {result.entity_id}: {result.message}"
        if result.severity == ValidationSeverity.ERROR.value:
            errors.append(_error(change, index, field, message))
            ok = False
        else:
            warnings.append(_warning(change, index, message))
    return entry.headword if ok else None


def _error(change: Change, index: int, field: str, message: str) -> ValidationError:
    return ValidationError(
        index=index,
        operation=change.operation,
        field=field,
        message=message,
        line_number=change.line_number,
    )


def _warning(change: Change, index: int, message: str) -> ValidationWarning:
    return ValidationWarning(
        index=index,
        operation=change.operation,
        message=message,
        line_number=change.line_number,
    )
