"""Protocols for pluggable repositories and collaborators."""

from triage_engine.core.interfaces.extractors import DocumentTextExtractor
from triage_engine.core.interfaces.logging import SupportLogger
from triage_engine.core.interfaces.repositories import (
    DataImporter,
    DiagnosticsRepository,
    InventoryRepository,
    KBRepository,
    ResponseTemplateRepository,
    TicketHistoryRepository,
)

__all__ = [
    "DataImporter",
    "DiagnosticsRepository",
    "DocumentTextExtractor",
    "InventoryRepository",
    "KBRepository",
    "ResponseTemplateRepository",
    "SupportLogger",
    "TicketHistoryRepository",
]
