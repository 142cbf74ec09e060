"""Exception hierarchy for the triage engine."""

from typing import Any


class TriageEngineError(Exception):
    """Base exception for all triage engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TriageEngineError):
    """Raised when settings or policy documents are invalid."""


class ValidationError(TriageEngineError):
    """Raised when caller-supplied values fail validation."""


class NotFoundError(TriageEngineError):
    """Raised when a requested record does not exist."""


class StorageError(TriageEngineError):
    """Raised when the local store cannot open, prepare or execute a statement."""


class MigrationError(StorageError):
    """Raised when a schema migration cannot be applied."""


class IngestionError(TriageEngineError):
    """Raised when a dataset file cannot be converted into records."""


class UnsupportedFormatError(IngestionError):
    """Raised when no reader exists for a dataset file."""


class ExtractionError(IngestionError):
    """Raised when document text extraction fails."""


class PipelineError(TriageEngineError):
    """Raised for pipeline-wide failures that abort a whole run."""
