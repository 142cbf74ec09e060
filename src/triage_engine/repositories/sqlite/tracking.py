"""SQLite repositories for tracked tickets and saved response templates."""

import json
import sqlite3
import time
from datetime import datetime

from triage_engine.core.exceptions import NotFoundError, ValidationError
from triage_engine.core.models import SavedResponseTemplate, TriageTicketRecord
from triage_engine.repositories.sqlite.database import SQLiteDatabase


def _timestamp(value: float | None) -> datetime:
    return datetime.fromtimestamp(value or 0.0)


class SQLiteTicketHistoryRepository:
    """Triage history keyed by ticket number."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def upsert(
        self,
        ticket_number: str,
        source_text: str,
        response_template: str,
        resolution_summary: str | None,
        missing_fields: list[str],
    ) -> None:
        """Create or refresh a ticket; an existing resolution survives a None update."""
        if not ticket_number.strip():
            raise ValidationError("Ticket number is required")

        now = time.time()
        self._db.execute(
            """
            INSERT INTO triage_tickets (
                ticket_number, source_text, response_template, resolution_summary,
                missing_fields_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(ticket_number) DO UPDATE SET
                source_text = excluded.source_text,
                response_template = excluded.response_template,
                resolution_summary = COALESCE(
                    excluded.resolution_summary, triage_tickets.resolution_summary
                ),
                missing_fields_json = excluded.missing_fields_json,
                updated_at = excluded.updated_at
            """,
            (
                ticket_number,
                source_text,
                response_template,
                resolution_summary,
                json.dumps(missing_fields),
                now,
                now,
            ),
        )

    def list_recent(self, limit: int) -> list[TriageTicketRecord]:
        rows = self._db.query(
            """
            SELECT id, ticket_number, source_text, response_template, resolution_summary,
                   missing_fields_json, created_at, updated_at
            FROM triage_tickets
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (max(1, limit),),
        )
        return [self._row_to_ticket(row) for row in rows]

    def get(self, ticket_number: str) -> TriageTicketRecord | None:
        row = self._db.query_one(
            """
            SELECT id, ticket_number, source_text, response_template, resolution_summary,
                   missing_fields_json, created_at, updated_at
            FROM triage_tickets
            WHERE ticket_number = ?
            """,
            (ticket_number,),
        )
        return self._row_to_ticket(row) if row else None

    @staticmethod
    def _row_to_ticket(row: sqlite3.Row) -> TriageTicketRecord:
        try:
            missing = json.loads(row["missing_fields_json"] or "[]")
        except ValueError:
            missing = []
        return TriageTicketRecord(
            id=row["id"],
            ticket_number=row["ticket_number"] or "",
            source_text=row["source_text"] or "",
            response_template=row["response_template"] or "",
            resolution_summary=row["resolution_summary"],
            missing_fields=[str(item) for item in missing] if isinstance(missing, list) else [],
            created_at=_timestamp(row["created_at"]),
            updated_at=_timestamp(row["updated_at"]),
        )


class SQLiteResponseTemplateRepository:
    """Technician response templates, unique by name."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def list_templates(self, limit: int) -> list[SavedResponseTemplate]:
        rows = self._db.query(
            """
            SELECT id, name, body, created_at, updated_at
            FROM response_templates
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (max(1, limit),),
        )
        return [self._row_to_template(row) for row in rows]

    def get(self, template_id: int) -> SavedResponseTemplate | None:
        row = self._db.query_one(
            "SELECT id, name, body, created_at, updated_at FROM response_templates WHERE id = ?",
            (template_id,),
        )
        return self._row_to_template(row) if row is not None else None

    def save_template(self, name: str, body: str) -> SavedResponseTemplate:
        """Insert or update by name, keeping the original creation time."""
        name = name.strip()
        body = body.strip()
        if not name:
            raise ValidationError("Template name is required")
        if not body:
            raise ValidationError("Template body is required")

        now = time.time()
        with self._db.transaction():
            self._db.execute(
                """
                INSERT INTO response_templates (name, body, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    body = excluded.body,
                    updated_at = excluded.updated_at
                """,
                (name, body, now, now),
            )
            row = self._db.query_one(
                "SELECT id, name, body, created_at, updated_at FROM response_templates WHERE name = ?",
                (name,),
            )
        if row is None:
            raise NotFoundError("Template lookup failed after save", details={"name": name})
        return self._row_to_template(row)

    def delete_template(self, template_id: int) -> None:
        self._db.execute("DELETE FROM response_templates WHERE id = ?", (template_id,))

    @staticmethod
    def _row_to_template(row: sqlite3.Row) -> SavedResponseTemplate:
        return SavedResponseTemplate(
            id=row["id"],
            name=row["name"] or "",
            body=row["body"] or "",
            created_at=_timestamp(row["created_at"]),
            updated_at=_timestamp(row["updated_at"]),
        )
