"""Versioned schema migrations gated by ``PRAGMA user_version``."""

from collections.abc import Callable

import structlog

from triage_engine.core.exceptions import MigrationError, StorageError
from triage_engine.repositories.sqlite.database import SQLiteDatabase

logger = structlog.get_logger(__name__)

SCHEMA_V1 = """
CREATE TABLE IF NOT EXISTS kb_articles (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    body_text TEXT NOT NULL,
    source_path TEXT NOT NULL,
    tags_json TEXT NOT NULL,
    platforms_json TEXT NOT NULL,
    apps_json TEXT NOT NULL,
    keywords_json TEXT NOT NULL,
    tags_search TEXT NOT NULL,
    updated_at REAL NOT NULL
);

CREATE VIRTUAL TABLE IF NOT EXISTS kb_articles_fts USING fts5(
    title,
    body_text,
    tags_search,
    content='kb_articles',
    content_rowid='rowid'
);

CREATE TRIGGER IF NOT EXISTS kb_ai AFTER INSERT ON kb_articles BEGIN
    INSERT INTO kb_articles_fts(rowid, title, body_text, tags_search)
    VALUES (new.rowid, new.title, new.body_text, new.tags_search);
END;

CREATE TRIGGER IF NOT EXISTS kb_ad AFTER DELETE ON kb_articles BEGIN
    INSERT INTO kb_articles_fts(kb_articles_fts, rowid, title, body_text, tags_search)
    VALUES ('delete', old.rowid, old.title, old.body_text, old.tags_search);
END;

CREATE TRIGGER IF NOT EXISTS kb_au AFTER UPDATE ON kb_articles BEGIN
    INSERT INTO kb_articles_fts(kb_articles_fts, rowid, title, body_text, tags_search)
    VALUES ('delete', old.rowid, old.title, old.body_text, old.tags_search);
    INSERT INTO kb_articles_fts(rowid, title, body_text, tags_search)
    VALUES (new.rowid, new.title, new.body_text, new.tags_search);
END;

CREATE TABLE IF NOT EXISTS inventory_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source TEXT NOT NULL,
    source_type TEXT NOT NULL,
    serial_number TEXT,
    username TEXT,
    display_name TEXT,
    asset_tag TEXT,
    phone_number TEXT,
    os_version TEXT,
    model TEXT,
    raw_json TEXT NOT NULL,
    updated_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_inventory_serial ON inventory_records(serial_number);
CREATE INDEX IF NOT EXISTS idx_inventory_username ON inventory_records(username);
CREATE INDEX IF NOT EXISTS idx_inventory_display_name ON inventory_records(display_name);
CREATE INDEX IF NOT EXISTS idx_inventory_asset_tag ON inventory_records(asset_tag);
CREATE INDEX IF NOT EXISTS idx_inventory_phone_number ON inventory_records(phone_number);

CREATE TABLE IF NOT EXISTS imports (
    path TEXT PRIMARY KEY,
    sha256 TEXT NOT NULL,
    modified_time REAL NOT NULL,
    imported_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    level TEXT NOT NULL,
    message TEXT NOT NULL,
    created_at REAL NOT NULL
);
"""

SCHEMA_V2 = """
CREATE TABLE IF NOT EXISTS triage_tickets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ticket_number TEXT NOT NULL UNIQUE,
    source_text TEXT NOT NULL,
    response_template TEXT NOT NULL,
    resolution_summary TEXT,
    missing_fields_json TEXT NOT NULL,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_triage_tickets_updated_at ON triage_tickets(updated_at);

CREATE TABLE IF NOT EXISTS response_templates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    body TEXT NOT NULL,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_response_templates_updated_at ON response_templates(updated_at);
"""

SCHEMA_V3 = """
ALTER TABLE logs ADD COLUMN category TEXT NOT NULL DEFAULT 'general';
ALTER TABLE logs ADD COLUMN details TEXT;
CREATE INDEX IF NOT EXISTS idx_logs_created_at ON logs(created_at);
CREATE INDEX IF NOT EXISTS idx_logs_level ON logs(level);
"""

LATEST_VERSION = 3


class DatabaseMigrator:
    """Applies pending migrations in order and bumps ``user_version`` after each."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database
        self._migrations: list[tuple[int, Callable[[], None]]] = [
            (1, self._migrate_v1),
            (2, self._migrate_v2),
            (3, self._migrate_v3),
        ]

    def migrate(self) -> int:
        """Bring the schema up to date and return the resulting version."""
        with self._db.lock:
            current = self._db.user_version
            for version, apply in self._migrations:
                if current >= version:
                    continue
                try:
                    apply()
                except StorageError as e:
                    raise MigrationError(
                        f"Migration to schema v{version} failed: {e.message}",
                        details={"version": version, **e.details},
                    ) from e
                self._db.user_version = version
                current = version
                logger.info("sqlite.migrated", version=version, path=str(self._db.db_path))
            return current

    def _migrate_v1(self) -> None:
        self._db.executescript(SCHEMA_V1)

    def _migrate_v2(self) -> None:
        self._db.executescript(SCHEMA_V2)

    def _migrate_v3(self) -> None:
        try:
            self._db.executescript(SCHEMA_V3)
        except StorageError:
            # A prior partial run may have added one of the columns already.
            logger.warning("sqlite.migration.v3_fallback", path=str(self._db.db_path))
            self._apply_log_schema_fallbacks()

    def _apply_log_schema_fallbacks(self) -> None:
        if not self._db.column_exists("logs", "category"):
            self._db.execute("ALTER TABLE logs ADD COLUMN category TEXT NOT NULL DEFAULT 'general'")
        if not self._db.column_exists("logs", "details"):
            self._db.execute("ALTER TABLE logs ADD COLUMN details TEXT")
        self._db.execute("CREATE INDEX IF NOT EXISTS idx_logs_created_at ON logs(created_at)")
        self._db.execute("CREATE INDEX IF NOT EXISTS idx_logs_level ON logs(level)")
