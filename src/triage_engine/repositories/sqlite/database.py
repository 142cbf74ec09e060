"""SQLite connection wrapper.

One connection per process, serialized by a re-entrant lock. Multi-statement
mutations go through ``transaction()``, which uses ``BEGIN IMMEDIATE`` so a
writer either commits everything or rolls back.
"""

import sqlite3
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

from triage_engine.core.exceptions import PipelineError, StorageError

logger = structlog.get_logger(__name__)

Params = Sequence[Any] | dict[str, Any]


class SQLiteDatabase:
    """Thin wrapper over ``sqlite3`` that raises ``StorageError`` on failure."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.RLock()

        if str(self.db_path) != ":memory:":
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PipelineError(
                    f"Cannot create database directory: {e}",
                    details={"path": str(self.db_path.parent)},
                ) from e

        try:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            raise StorageError(
                f"Cannot open database: {e}", details={"path": str(self.db_path)}
            ) from e

        self._conn.row_factory = sqlite3.Row
        self.execute("PRAGMA foreign_keys = ON")
        self.execute("PRAGMA journal_mode = WAL")
        self.execute("PRAGMA synchronous = NORMAL")
        logger.debug("sqlite.opened", path=str(self.db_path))

    @property
    def lock(self) -> threading.RLock:
        """Single-writer lock; hold it across a whole import run."""
        return self._lock

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        with self._lock, self._errors(sql):
            return self._conn.execute(sql, params)

    def executemany(self, sql: str, rows: Iterable[Params]) -> sqlite3.Cursor:
        with self._lock, self._errors(sql):
            return self._conn.executemany(sql, rows)

    def executescript(self, script: str) -> None:
        with self._lock, self._errors(script):
            self._conn.executescript(script)

    def query(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        with self._lock, self._errors(sql):
            return self._conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: Params = ()) -> sqlite3.Row | None:
        with self._lock, self._errors(sql):
            return self._conn.execute(sql, params).fetchone()

    @contextmanager
    def transaction(self) -> Iterator["SQLiteDatabase"]:
        """Run a block atomically, rolling back on any exception."""
        with self._lock:
            if self._conn.in_transaction:
                # Nested use joins the outer transaction.
                yield self
                return

            self.execute("BEGIN IMMEDIATE")
            try:
                yield self
            except BaseException:
                try:
                    self._conn.execute("ROLLBACK")
                except sqlite3.Error as rollback_error:
                    logger.error("sqlite.rollback_failed", error=str(rollback_error))
                raise
            else:
                self.execute("COMMIT")

    @property
    def last_insert_rowid(self) -> int:
        row = self.query_one("SELECT last_insert_rowid()")
        return int(row[0]) if row else 0

    @property
    def user_version(self) -> int:
        row = self.query_one("PRAGMA user_version")
        return int(row[0]) if row else 0

    @user_version.setter
    def user_version(self, version: int) -> None:
        self.execute(f"PRAGMA user_version = {int(version)}")

    def column_exists(self, table: str, column: str) -> bool:
        rows = self.query(f"PRAGMA table_info({table})")
        return any(row["name"] == column for row in rows)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
        logger.debug("sqlite.closed", path=str(self.db_path))

    @contextmanager
    def _errors(self, sql: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            raise StorageError(
                f"SQLite error: {e}",
                details={"path": str(self.db_path), "sql": sql.strip()[:200]},
            ) from e
