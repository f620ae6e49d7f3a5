"""Custom exception hierarchy for dictionary-editor."""


class DictionaryEditorError(Exception):
    """Base exception for all dictionary-editor errors."""


class ValidationError(DictionaryEditorError):
    """Invalid data (bad language tag, malformed entry payload)."""


class EntityNotFoundError(DictionaryEditorError):
    """Entry doesn't exist in the collection."""


class DataImportError(DictionaryEditorError):
    """Failed to import data (malformed JSON, wrong root type)."""


class ExportError(DictionaryEditorError):
    """Failed to write an export file."""


class DatabaseError(DictionaryEditorError):
    """Schema version mismatch, connection failure."""


class SnapshotCorruptError(DatabaseError):
    """Stored snapshot could not be decoded."""


class RemoteSyncError(DictionaryEditorError):
    """Remote table backend rejected a call or was unreachable."""


class GenerationError(DictionaryEditorError):
    """Generative content service failed (credentials, network, response)."""


class ConfigError(DictionaryEditorError):
    """Configuration file could not be read or has the wrong shape."""
