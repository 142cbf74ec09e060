"""Domain models for the triage engine."""

from triage_engine.core.models.dataset import (
    SUPPORTED_EXTENSIONS,
    DataPackConfiguration,
    FileFingerprint,
    ImportReport,
)
from triage_engine.core.models.diagnostics import DiagnosticLogEntry, DiagnosticLogLevel
from triage_engine.core.models.intake import (
    DeviceType,
    IntakeField,
    IntakeRecord,
    normalize_serial,
)
from triage_engine.core.models.inventory import (
    InventoryLookupQuery,
    InventoryRecord,
    InventorySourceType,
    LinkedDeviceContext,
    LookupField,
)
from triage_engine.core.models.knowledge import (
    KBArticle,
    KBSearchQuery,
    KBSearchResult,
    SourceCitation,
)
from triage_engine.core.models.policy import SupportWorkflowPolicy
from triage_engine.core.models.response import AssistantTurn, BotResponse
from triage_engine.core.models.tickets import SavedResponseTemplate, TriageTicketRecord

__all__ = [
    # Intake
    "DeviceType",
    "IntakeField",
    "IntakeRecord",
    "normalize_serial",
    # Knowledge
    "KBArticle",
    "KBSearchQuery",
    "KBSearchResult",
    "SourceCitation",
    # Inventory
    "InventoryRecord",
    "InventorySourceType",
    "InventoryLookupQuery",
    "LinkedDeviceContext",
    "LookupField",
    # Responses
    "AssistantTurn",
    "BotResponse",
    # Diagnostics
    "DiagnosticLogEntry",
    "DiagnosticLogLevel",
    # Dataset
    "DataPackConfiguration",
    "FileFingerprint",
    "ImportReport",
    "SUPPORTED_EXTENSIONS",
    # Policy and tracking
    "SupportWorkflowPolicy",
    "SavedResponseTemplate",
    "TriageTicketRecord",
]
