"""In-memory repositories for tests and ephemeral sessions."""

import itertools
from datetime import datetime

from triage_engine.core.exceptions import ValidationError
from triage_engine.core.models import (
    DiagnosticLogEntry,
    DiagnosticLogLevel,
    InventoryLookupQuery,
    InventoryRecord,
    KBArticle,
    KBSearchQuery,
    KBSearchResult,
    LinkedDeviceContext,
    LookupField,
    SavedResponseTemplate,
    TriageTicketRecord,
    normalize_serial,
)
from triage_engine.normalization import tokenize
from triage_engine.repositories.sqlite.diagnostics import (
    normalize_category,
    normalize_details,
    normalize_message,
    render_export,
)
from triage_engine.repositories.sqlite.inventory import LINKED_CONTEXT_LIMIT, linked_confidence
from triage_engine.repositories.sqlite.knowledge import query_tokens, rerank_score


class InMemoryKBRepository:
    """Token-overlap search over a list of articles.

    Every query token must prefix-match some word of the article, mirroring
    the FTS ``AND`` semantics. Scores use the same rerank as SQLite, with the
    number of matched words standing in for the bm25 rank.
    """

    def __init__(self, articles: list[KBArticle] | None = None) -> None:
        self._articles: dict[str, KBArticle] = {}
        for article in articles or []:
            self.add(article)

    def add(self, article: KBArticle) -> None:
        self._articles[article.id] = article

    def search(self, query: KBSearchQuery, limit: int) -> list[KBSearchResult]:
        tokens = query_tokens(query.text)
        if not tokens:
            return []

        results = []
        for article in self._articles.values():
            words = tokenize(f"{article.title} {article.body_text} {' '.join(article.tags)}")
            hits = sum(1 for word in words for token in tokens if word.startswith(token))
            if not all(any(word.startswith(token) for word in words) for token in tokens):
                continue
            results.append(
                KBSearchResult(article=article, score=rerank_score(1.0 / hits, article, query))
            )

        results = sorted(results, key=lambda result: result.score, reverse=True)
        return results[:limit]

    def get_article(self, article_id: str) -> KBArticle | None:
        return self._articles.get(article_id)


class InMemoryInventoryRepository:
    def __init__(self, records: list[InventoryRecord] | None = None) -> None:
        self._records: list[InventoryRecord] = []
        for record in records or []:
            self.add(record)

    def add(self, record: InventoryRecord) -> None:
        stored = record.model_copy(
            update={
                "id": len(self._records) + 1,
                "serial_number": normalize_serial(record.serial_number),
            }
        )
        self._records.append(stored)

    def lookup(self, query: InventoryLookupQuery, limit: int) -> list[InventoryRecord]:
        trimmed = query.text.strip()
        if not trimmed:
            return []

        serial = normalize_serial(trimmed)
        needle = trimmed.casefold()

        def contains(value: str | None) -> bool:
            return bool(value) and needle in value.casefold()

        def matches(record: InventoryRecord) -> bool:
            checks = {
                LookupField.SERIAL_NUMBER: record.serial_number == serial,
                LookupField.DISPLAY_NAME: contains(record.display_name),
                LookupField.USERNAME: contains(record.username),
                LookupField.ASSET_TAG: contains(record.asset_tag),
                LookupField.PHONE_NUMBER: contains(record.phone_number),
            }
            if query.field is LookupField.ANY:
                return any(checks.values())
            return checks[query.field]

        return [record for record in self._records if matches(record)][:limit]

    def linked_context(
        self, serial_number: str | None, username: str | None
    ) -> LinkedDeviceContext:
        serial = normalize_serial(serial_number)
        user = username.strip() if username and username.strip() else None
        records = [
            record
            for record in self._records
            if (serial and record.serial_number == serial)
            or (user and record.username and user.casefold() in record.username.casefold())
        ][:LINKED_CONTEXT_LIMIT]
        return LinkedDeviceContext(
            records=records, confidence=linked_confidence(records, serial, user)
        )


class InMemoryTicketHistoryRepository:
    def __init__(self) -> None:
        self._tickets: dict[str, TriageTicketRecord] = {}
        self._ids = itertools.count(1)

    def upsert(
        self,
        ticket_number: str,
        source_text: str,
        response_template: str,
        resolution_summary: str | None,
        missing_fields: list[str],
    ) -> None:
        if not ticket_number.strip():
            raise ValidationError("Ticket number is required")
        now = datetime.now()
        existing = self._tickets.get(ticket_number)
        self._tickets[ticket_number] = TriageTicketRecord(
            id=existing.id if existing else next(self._ids),
            ticket_number=ticket_number,
            source_text=source_text,
            response_template=response_template,
            resolution_summary=resolution_summary
            if resolution_summary is not None
            else (existing.resolution_summary if existing else None),
            missing_fields=list(missing_fields),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

    def list_recent(self, limit: int) -> list[TriageTicketRecord]:
        ordered = sorted(self._tickets.values(), key=lambda t: t.updated_at, reverse=True)
        return ordered[: max(1, limit)]

    def get(self, ticket_number: str) -> TriageTicketRecord | None:
        return self._tickets.get(ticket_number)


class InMemoryResponseTemplateRepository:
    def __init__(self) -> None:
        self._templates: dict[str, SavedResponseTemplate] = {}
        self._ids = itertools.count(1)

    def list_templates(self, limit: int) -> list[SavedResponseTemplate]:
        ordered = sorted(self._templates.values(), key=lambda t: t.updated_at, reverse=True)
        return ordered[: max(1, limit)]

    def get(self, template_id: int) -> SavedResponseTemplate | None:
        return next((t for t in self._templates.values() if t.id == template_id), None)

    def save_template(self, name: str, body: str) -> SavedResponseTemplate:
        name = name.strip()
        body = body.strip()
        if not name:
            raise ValidationError("Template name is required")
        if not body:
            raise ValidationError("Template body is required")
        now = datetime.now()
        existing = self._templates.get(name)
        template = SavedResponseTemplate(
            id=existing.id if existing else next(self._ids),
            name=name,
            body=body,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._templates[name] = template
        return template

    def delete_template(self, template_id: int) -> None:
        for name, template in list(self._templates.items()):
            if template.id == template_id:
                del self._templates[name]


class InMemoryDiagnosticsRepository:
    def __init__(self, retention_days: int = 30) -> None:
        self.retention_days = max(1, retention_days)
        self._entries: list[DiagnosticLogEntry] = []
        self._ids = itertools.count(1)

    def append(
        self,
        level: DiagnosticLogLevel,
        category: str,
        message: str,
        details: str | None = None,
    ) -> int:
        entry = DiagnosticLogEntry(
            id=next(self._ids),
            level=DiagnosticLogLevel(level),
            category=normalize_category(category),
            message=normalize_message(message),
            details=normalize_details(details),
            created_at=datetime.now(),
        )
        self._entries.append(entry)
        return entry.id

    def list_recent(self, limit: int) -> list[DiagnosticLogEntry]:
        return list(reversed(self._entries))[: max(1, limit)]

    def get(self, entry_id: int) -> DiagnosticLogEntry | None:
        return next((entry for entry in self._entries if entry.id == entry_id), None)

    def purge(self, older_than: datetime) -> int:
        kept = [entry for entry in self._entries if entry.created_at >= older_than]
        removed = len(self._entries) - len(kept)
        self._entries = kept
        return removed

    def export_text(self, limit: int) -> str:
        return render_export(self.list_recent(limit), self.retention_days)


class MemoryLogger:
    """``SupportLogger`` that keeps ``(level, message)`` pairs in a list."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def log(self, message: str) -> None:
        self.events.append(("info", message))

    def error(self, message: str) -> None:
        self.events.append(("error", message))

    @property
    def errors(self) -> list[str]:
        return [message for level, message in self.events if level == "error"]


class NullLogger:
    def log(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass
