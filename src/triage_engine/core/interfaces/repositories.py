"""Repository protocols.

Each protocol has a SQLite-backed implementation under
``triage_engine.repositories.sqlite`` and an in-memory one in
``triage_engine.repositories.memory``.
"""

from datetime import datetime
from typing import Protocol

from triage_engine.core.models import (
    DataPackConfiguration,
    DiagnosticLogEntry,
    DiagnosticLogLevel,
    ImportReport,
    InventoryLookupQuery,
    InventoryRecord,
    KBArticle,
    KBSearchQuery,
    KBSearchResult,
    LinkedDeviceContext,
    SavedResponseTemplate,
    TriageTicketRecord,
)


class KBRepository(Protocol):
    """Ranked search and lookup over knowledge base articles."""

    def search(self, query: KBSearchQuery, limit: int) -> list[KBSearchResult]:
        """Search articles and return them best match first.

        Args:
            query: Query text plus optional device and app preferences.
            limit: Maximum number of results.

        Returns:
            Reranked results. An empty list is a normal outcome.
        """
        ...

    def get_article(self, article_id: str) -> KBArticle | None:
        ...


class InventoryRepository(Protocol):
    """Inventory lookup and cross-source linking."""

    def lookup(self, query: InventoryLookupQuery, limit: int) -> list[InventoryRecord]:
        ...

    def linked_context(
        self, serial_number: str | None, username: str | None
    ) -> LinkedDeviceContext:
        """Correlate records by serial number and/or username.

        Args:
            serial_number: Serial to match exactly after normalization.
            username: Username fragment to match as a substring.

        Returns:
            Up to 20 records with a confidence score.
        """
        ...


class DataImporter(Protocol):
    def import_all(self, config: DataPackConfiguration) -> ImportReport:
        """Import every supported file of a dataset pack."""
        ...


class TicketHistoryRepository(Protocol):
    def upsert(
        self,
        ticket_number: str,
        source_text: str,
        response_template: str,
        resolution_summary: str | None,
        missing_fields: list[str],
    ) -> None:
        ...

    def list_recent(self, limit: int) -> list[TriageTicketRecord]:
        ...


class ResponseTemplateRepository(Protocol):
    def list_templates(self, limit: int) -> list[SavedResponseTemplate]:
        ...

    def get(self, template_id: int) -> SavedResponseTemplate | None:
        ...

    def save_template(self, name: str, body: str) -> SavedResponseTemplate:
        ...

    def delete_template(self, template_id: int) -> None:
        ...


class DiagnosticsRepository(Protocol):
    """Persistence, retention and export of diagnostics events."""

    def append(
        self,
        level: DiagnosticLogLevel,
        category: str,
        message: str,
        details: str | None = None,
    ) -> int:
        ...

    def list_recent(self, limit: int) -> list[DiagnosticLogEntry]:
        ...

    def get(self, entry_id: int) -> DiagnosticLogEntry | None:
        ...

    def purge(self, older_than: datetime) -> int:
        ...

    def export_text(self, limit: int) -> str:
        ...
