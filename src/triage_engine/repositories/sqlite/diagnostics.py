"""SQLite diagnostics store with retention, plus the logger that writes into it."""

import sqlite3
import time
from datetime import datetime, timedelta

import structlog

from triage_engine.core.interfaces import DiagnosticsRepository
from triage_engine.core.models import DiagnosticLogEntry, DiagnosticLogLevel
from triage_engine.repositories.sqlite.database import SQLiteDatabase

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "general"
EMPTY_MESSAGE = "No message provided."
EXPORT_TITLE = "Triage Engine Diagnostic Export"
EXPORT_TIME_FORMAT = "%b %d, %Y %H:%M:%S"


def normalize_category(raw: str) -> str:
    return raw.strip() or DEFAULT_CATEGORY


def normalize_message(raw: str) -> str:
    return raw.strip() or EMPTY_MESSAGE


def normalize_details(raw: str | None) -> str | None:
    if raw is None:
        return None
    return raw.strip() or None


def render_export(
    entries: list[DiagnosticLogEntry], retention_days: int, generated_at: datetime | None = None
) -> str:
    """Plain-text diagnostics report, newest entry first."""
    generated_at = generated_at or datetime.now()
    lines = [
        EXPORT_TITLE,
        f"Generated: {generated_at.strftime(EXPORT_TIME_FORMAT)}",
        f"Retention: {retention_days} days",
        "",
    ]

    if not entries:
        lines.append("No diagnostic events recorded.")
        lines.append("")
        return "\n".join(lines)

    for entry in entries:
        lines.append(
            f"[{entry.created_at.strftime(EXPORT_TIME_FORMAT)}] "
            f"[{entry.level.value.upper()}] [{entry.category}] {entry.message}"
        )
        details = normalize_details(entry.details)
        if details:
            lines.append(details)
        lines.append("")

    return "\n".join(lines)


class SQLiteDiagnosticsRepository:
    """Diagnostics events in the ``logs`` table.

    Records older than the retention window are purged before every
    append, list and get.
    """

    def __init__(self, database: SQLiteDatabase, retention_days: int = 30) -> None:
        self._db = database
        self.retention_days = max(1, retention_days)

    def append(
        self,
        level: DiagnosticLogLevel,
        category: str,
        message: str,
        details: str | None = None,
    ) -> int:
        self._purge_expired()
        with self._db.lock:
            self._db.execute(
                """
                INSERT INTO logs (level, category, message, details, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    DiagnosticLogLevel(level).value,
                    normalize_category(category),
                    normalize_message(message),
                    normalize_details(details),
                    time.time(),
                ),
            )
            return self._db.last_insert_rowid

    def list_recent(self, limit: int) -> list[DiagnosticLogEntry]:
        self._purge_expired()
        rows = self._db.query(
            """
            SELECT id, level, category, message, details, created_at
            FROM logs
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (max(1, limit),),
        )
        return [self._row_to_entry(row) for row in rows]

    def get(self, entry_id: int) -> DiagnosticLogEntry | None:
        self._purge_expired()
        row = self._db.query_one(
            """
            SELECT id, level, category, message, details, created_at
            FROM logs
            WHERE id = ?
            LIMIT 1
            """,
            (entry_id,),
        )
        return self._row_to_entry(row) if row else None

    def purge(self, older_than: datetime) -> int:
        """Delete entries created before ``older_than``; returns how many."""
        cutoff = older_than.timestamp()
        with self._db.transaction():
            row = self._db.query_one("SELECT COUNT(*) FROM logs WHERE created_at < ?", (cutoff,))
            count = int(row[0]) if row else 0
            if count:
                self._db.execute("DELETE FROM logs WHERE created_at < ?", (cutoff,))
        if count:
            logger.debug("diagnostics.purged", count=count)
        return count

    def export_text(self, limit: int) -> str:
        return render_export(self.list_recent(limit), self.retention_days)

    def _purge_expired(self) -> None:
        self.purge(datetime.now() - timedelta(days=self.retention_days))

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> DiagnosticLogEntry:
        try:
            level = DiagnosticLogLevel(row["level"])
        except ValueError:
            level = DiagnosticLogLevel.INFO
        return DiagnosticLogEntry(
            id=row["id"],
            level=level,
            category=row["category"] or DEFAULT_CATEGORY,
            message=row["message"] or "",
            details=normalize_details(row["details"]),
            created_at=datetime.fromtimestamp(row["created_at"] or 0.0),
        )


class SQLiteLogger:
    """``SupportLogger`` that persists events to a diagnostics repository.

    Write failures are reported through structlog and never reach the caller.
    """

    def __init__(
        self, diagnostics_repository: DiagnosticsRepository, category: str = DEFAULT_CATEGORY
    ) -> None:
        self._repository = diagnostics_repository
        self.category = category

    def log(self, message: str) -> None:
        self._write(DiagnosticLogLevel.INFO, message)

    def error(self, message: str) -> None:
        self._write(DiagnosticLogLevel.ERROR, message)

    def _write(self, level: DiagnosticLogLevel, message: str) -> None:
        try:
            self._repository.append(level, self.category, message, None)
        except Exception as e:
            logger.warning(
                "diagnostics.write_failed",
                category=self.category,
                level=level.value,
                error=str(e),
            )
