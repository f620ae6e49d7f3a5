"""
Data classes and constants for the batch change request system.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# =============================================================================
# Operation Types
# =============================================================================

class OperationType(str, Enum):
    """Supported batch operations."""
    ADD_ENTRIES = "add_entries"
    IMPORT_FILE = "import_file"
    UPDATE_ENTRY = "update_entry"
    DELETE_ENTRY = "delete_entry"
    GENERATE = "generate"


# =============================================================================
# Field Requirements
# =============================================================================

# Required fields for each operation
REQUIRED_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_ENTRIES.value: ["entries"],
    OperationType.IMPORT_FILE.value: ["path"],
    OperationType.UPDATE_ENTRY.value: ["headword", "entry"],
    OperationType.DELETE_ENTRY.value: ["headword"],
    OperationType.GENERATE.value: ["topic"],
}

# Optional fields for each operation
OPTIONAL_FIELDS: Dict[str, List[str]] = {
    OperationType.ADD_ENTRIES.value: [],
    OperationType.IMPORT_FILE.value: [],
    OperationType.UPDATE_ENTRY.value: [],
    OperationType.DELETE_ENTRY.value: [],
    OperationType.GENERATE.value: ["count"],
}

DEFAULT_GENERATE_COUNT = 5
MAX_GENERATE_COUNT = 50


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class Change:
    """Single change operation."""
    operation: str
    params: Dict[str, Any]
    line_number: Optional[int] = None

    @property
    def headword(self) -> Optional[str]:
        """Get the target headword if present in params."""
        return self.params.get("headword")


@dataclass
class ChangeRequest:
    """Parsed change request from YAML."""
    changes: List[Change]
    session_name: Optional[str] = None
    session_description: Optional[str] = None
    source_file: Optional[Path] = None

    def resolve_path(self, path: str) -> Path:
        """Resolve *path* relative to the request file, if there is one."""
        candidate = Path(path).expanduser()
        if candidate.is_absolute() or self.source_file is None:
            return candidate
        return self.source_file.parent / candidate


@dataclass
class ValidationError:
    """Validation error for a specific change."""
    index: int
    operation: str
    field: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationWarning:
    """Validation warning for a specific change."""
    index: int
    operation: str
    message: str
    line_number: Optional[int] = None


@dataclass
class ValidationResult:
    """Result of validating a change request."""
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


@dataclass
class ChangeResult:
    """Result of executing a single change."""
    index: int
    operation: str
    success: bool
    message: str
    target: Optional[str] = None
    added: int = 0
    updated: int = 0
    error: Optional[str] = None


@dataclass
class BatchResult:
    """Result of executing a batch change request."""
    session_name: Optional[str]
    total_count: int
    success_count: int
    failure_count: int
    changes: List[ChangeResult]
    duration_seconds: float
    dry_run: bool = False

    @property
    def skipped_count(self) -> int:
        return self.total_count - self.success_count - self.failure_count
