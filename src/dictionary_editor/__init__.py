__version__ = "0.1.0"

from .store import (
    DictionaryStore as DictionaryStore,
)

from .db import (
    SnapshotCache as SnapshotCache,
)

from .gateway import (
    RemoteGateway as RemoteGateway,
    RestGateway as RestGateway,
    MemoryGateway as MemoryGateway,
    SyncWorker as SyncWorker,
)

from .models import (
    Language as Language,
    VoteDirection as VoteDirection,
    SuggestionStatus as SuggestionStatus,
    EditOperation as EditOperation,
    ValidationSeverity as ValidationSeverity,
    Example as Example,
    Sense as Sense,
    CommunityStats as CommunityStats,
    DictionaryEntry as DictionaryEntry,
    WordSuggestion as WordSuggestion,
    SuggestionResult as SuggestionResult,
    ImportResult as ImportResult,
    EditRecord as EditRecord,
    ValidationResult as ValidationResult,
    entry_from_dict as entry_from_dict,
    entry_to_dict as entry_to_dict,
)

from .exceptions import (
    DictionaryEditorError as DictionaryEditorError,
    ValidationError as ValidationError,
    EntityNotFoundError as EntityNotFoundError,
    DataImportError as DataImportError,
    ExportError as ExportError,
    DatabaseError as DatabaseError,
    SnapshotCorruptError as SnapshotCorruptError,
    RemoteSyncError as RemoteSyncError,
    GenerationError as GenerationError,
    ConfigError as ConfigError,
)

from .importer import import_file as import_file, load_entries as load_entries
from .exporter import export_store as export_store, dump_entries as dump_entries
from .generator import GenerativeClient as GenerativeClient
from .config import Settings as Settings, load_settings as load_settings

# Batch module - import as submodule to avoid naming conflicts
from . import batch

__all__ = [
    # Batch module
    "batch",
    # Store and backends
    "DictionaryStore",
    "SnapshotCache",
    "RemoteGateway",
    "RestGateway",
    "MemoryGateway",
    "SyncWorker",
    "GenerativeClient",
    # Enums
    "Language",
    "VoteDirection",
    "SuggestionStatus",
    "EditOperation",
    "ValidationSeverity",
    # Models
    "Example",
    "Sense",
    "CommunityStats",
    "DictionaryEntry",
    "WordSuggestion",
    "SuggestionResult",
    "ImportResult",
    "EditRecord",
    "ValidationResult",
    "entry_from_dict",
    "entry_to_dict",
    # Import / export
    "import_file",
    "load_entries",
    "export_store",
    "dump_entries",
    # Configuration
    "Settings",
    "load_settings",
    # Exceptions
    "DictionaryEditorError",
    "ValidationError",
    "EntityNotFoundError",
    "DataImportError",
    "ExportError",
    "DatabaseError",
    "SnapshotCorruptError",
    "RemoteSyncError",
    "GenerationError",
    "ConfigError",
]
