"""Ledger of imported dataset files and their fingerprints."""

import time

from triage_engine.core.models import FileFingerprint
from triage_engine.repositories.sqlite.database import SQLiteDatabase


class SQLiteImportLedger:
    """Tracks the fingerprint of each imported file, keyed by absolute path."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def fingerprint(self, path: str) -> FileFingerprint | None:
        row = self._db.query_one(
            "SELECT sha256, modified_time FROM imports WHERE path = ?", (path,)
        )
        if row is None:
            return None
        return FileFingerprint(sha256=row["sha256"], modified_time=row["modified_time"])

    def is_unchanged(self, path: str, fingerprint: FileFingerprint) -> bool:
        """True when both the stored hash and modification time match."""
        stored = self.fingerprint(path)
        if stored is None:
            return False
        return (
            stored.sha256 == fingerprint.sha256
            and stored.modified_time == fingerprint.modified_time
        )

    def mark_imported(self, path: str, fingerprint: FileFingerprint) -> None:
        self._db.execute(
            """
            INSERT INTO imports (path, sha256, modified_time, imported_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                sha256 = excluded.sha256,
                modified_time = excluded.modified_time,
                imported_at = excluded.imported_at
            """,
            (path, fingerprint.sha256, fingerprint.modified_time, time.time()),
        )

    def count(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) FROM imports")
        return int(row[0]) if row else 0
