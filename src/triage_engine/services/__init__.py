"""Application services built on the conversation engine and repositories."""

from triage_engine.services.export import TicketExportService
from triage_engine.services.preferences import PreferencesStore
from triage_engine.services.retrieval import KnowledgeRetrievalService
from triage_engine.services.triage import TriageDeskService, TriageResult, normalize_ticket_number

__all__ = [
    "KnowledgeRetrievalService",
    "PreferencesStore",
    "TicketExportService",
    "TriageDeskService",
    "TriageResult",
    "normalize_ticket_number",
]
