"""Core domain models, interfaces and exceptions for the triage engine."""

from triage_engine.core.exceptions import (
    ConfigurationError,
    ExtractionError,
    IngestionError,
    MigrationError,
    NotFoundError,
    PipelineError,
    StorageError,
    TriageEngineError,
    UnsupportedFormatError,
    ValidationError,
)
from triage_engine.core.models import (
    AssistantTurn,
    BotResponse,
    DataPackConfiguration,
    DeviceType,
    ImportReport,
    IntakeField,
    IntakeRecord,
    InventoryRecord,
    KBArticle,
    KBSearchQuery,
    KBSearchResult,
    LinkedDeviceContext,
    SupportWorkflowPolicy,
)

__all__ = [
    # Models
    "AssistantTurn",
    "BotResponse",
    "DataPackConfiguration",
    "DeviceType",
    "ImportReport",
    "IntakeField",
    "IntakeRecord",
    "InventoryRecord",
    "KBArticle",
    "KBSearchQuery",
    "KBSearchResult",
    "LinkedDeviceContext",
    "SupportWorkflowPolicy",
    # Exceptions
    "TriageEngineError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "MigrationError",
    "IngestionError",
    "UnsupportedFormatError",
    "ExtractionError",
    "PipelineError",
]
