"""
Batch change request module for dictionary-editor.

This module applies standardized change requests in YAML format to a
dictionary store.

Example usage:
    from dictionary_editor.batch import (
        load_change_request,
        validate_change_request,
        execute_change_request,
    )

    request = load_change_request("changes.yaml")

    validation = validate_change_request(request, store)
    if not validation.is_valid:
        for error in validation.errors:
            print(f"[{error.index}] {error.operation}: {error.message}")

    result = execute_change_request(request, store)
    print(f"Applied {result.success_count}/{result.total_count} changes")
"""

from .schema import (
    # Enums and constants
    OperationType as OperationType,
    REQUIRED_FIELDS as REQUIRED_FIELDS,
    OPTIONAL_FIELDS as OPTIONAL_FIELDS,
    # Data classes
    Change as Change,
    ChangeRequest as ChangeRequest,
    ValidationError as ValidationError,
    ValidationWarning as ValidationWarning,
    ValidationResult as ValidationResult,
    ChangeResult as ChangeResult,
    BatchResult as BatchResult,
)

from .parser import (
    load_change_request as load_change_request,
    ParseError as ParseError,
)

from .validator import (
    validate_change_request as validate_change_request,
)

from .executor import (
    execute_change_request as execute_change_request,
)

__all__ = [
    # Enums and constants
    "OperationType",
    "REQUIRED_FIELDS",
    "OPTIONAL_FIELDS",
    # Data classes
    "Change",
    "ChangeRequest",
    "ValidationError",
    "ValidationWarning",
    "ValidationResult",
    "ChangeResult",
    "BatchResult",
    # Functions
    "load_change_request",
    "validate_change_request",
    "execute_change_request",
    # Exceptions
    "ParseError",
]
