"""SQLite-backed repositories."""

from triage_engine.repositories.sqlite.database import SQLiteDatabase
from triage_engine.repositories.sqlite.diagnostics import SQLiteDiagnosticsRepository, SQLiteLogger
from triage_engine.repositories.sqlite.imports import SQLiteImportLedger
from triage_engine.repositories.sqlite.inventory import SQLiteInventoryRepository
from triage_engine.repositories.sqlite.knowledge import SQLiteKBRepository
from triage_engine.repositories.sqlite.migrations import LATEST_VERSION, DatabaseMigrator
from triage_engine.repositories.sqlite.tracking import (
    SQLiteResponseTemplateRepository,
    SQLiteTicketHistoryRepository,
)

__all__ = [
    "DatabaseMigrator",
    "LATEST_VERSION",
    "SQLiteDatabase",
    "SQLiteDiagnosticsRepository",
    "SQLiteImportLedger",
    "SQLiteInventoryRepository",
    "SQLiteKBRepository",
    "SQLiteLogger",
    "SQLiteResponseTemplateRepository",
    "SQLiteTicketHistoryRepository",
]
