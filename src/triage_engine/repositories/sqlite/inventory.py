"""SQLite inventory repository: field-routed lookup and device linking."""

import sqlite3
import time

import structlog

from triage_engine.core.models import (
    InventoryLookupQuery,
    InventoryRecord,
    InventorySourceType,
    LinkedDeviceContext,
    normalize_serial,
)
from triage_engine.repositories.sqlite.database import SQLiteDatabase

logger = structlog.get_logger(__name__)

LINKED_CONTEXT_LIMIT = 20
SERIAL_CONFIDENCE = 1.0
USERNAME_CONFIDENCE = 0.8
WEAK_CONFIDENCE = 0.45

_RECORD_COLUMNS = (
    "id, source, source_type, serial_number, username, display_name, "
    "asset_tag, phone_number, os_version, model, raw_json"
)

# One statement for every field selector. The first parameter routes the
# match; serials compare exactly, everything else is a substring match.
_LOOKUP_SQL = f"""
SELECT {_RECORD_COLUMNS}
FROM inventory_records
WHERE
    (? = 'serial' AND serial_number = ?)
    OR (? = 'display' AND display_name LIKE ?)
    OR (? = 'username' AND username LIKE ?)
    OR (? = 'asset' AND asset_tag LIKE ?)
    OR (? = 'phone' AND phone_number LIKE ?)
    OR (? = 'any' AND (
        serial_number = ?
        OR display_name LIKE ?
        OR username LIKE ?
        OR asset_tag LIKE ?
        OR phone_number LIKE ?
    ))
LIMIT ?
"""


def linked_confidence(
    records: list[InventoryRecord], serial_number: str | None, username: str | None
) -> float:
    """Score how strongly ``records`` belong to the given serial or user."""
    if serial_number and any(record.serial_number == serial_number for record in records):
        return SERIAL_CONFIDENCE
    if username:
        needle = username.casefold()
        if any(record.username and needle in record.username.casefold() for record in records):
            return USERNAME_CONFIDENCE
    return WEAK_CONFIDENCE if records else 0.0


class SQLiteInventoryRepository:
    """Inventory records stored in ``inventory_records``."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def lookup(self, query: InventoryLookupQuery, limit: int) -> list[InventoryRecord]:
        trimmed = query.text.strip()
        if not trimmed:
            return []

        token = query.field.value
        serial = normalize_serial(trimmed)
        like = f"%{trimmed}%"
        params = (
            token, serial,
            token, like,
            token, like,
            token, like,
            token, like,
            token, serial, like, like, like, like,
            limit,
        )
        rows = self._db.query(_LOOKUP_SQL, params)
        logger.debug("inventory.lookup", field=token, results=len(rows))
        return [_row_to_record(row) for row in rows]

    def linked_context(
        self, serial_number: str | None, username: str | None
    ) -> LinkedDeviceContext:
        serial = normalize_serial(serial_number)
        user = username.strip() if username and username.strip() else None
        user_like = f"%{user}%" if user else None

        rows = self._db.query(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM inventory_records
            WHERE (? IS NOT NULL AND serial_number = ?)
               OR (? IS NOT NULL AND username LIKE ?)
            LIMIT ?
            """,
            (serial, serial, user_like, user_like, LINKED_CONTEXT_LIMIT),
        )
        records = [_row_to_record(row) for row in rows]
        return LinkedDeviceContext(
            records=records, confidence=linked_confidence(records, serial, user)
        )

    def count(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) FROM inventory_records")
        return int(row[0]) if row else 0

    def replace_source(self, source_name: str, records: list[InventoryRecord]) -> int:
        """Delete rows imported from ``source_name`` and insert ``records``."""
        with self._db.transaction():
            self._db.execute("DELETE FROM inventory_records WHERE source = ?", (source_name,))
            self.insert_records(records)
        return len(records)

    def insert_records(self, records: list[InventoryRecord]) -> int:
        now = time.time()
        self._db.executemany(
            """
            INSERT INTO inventory_records (
                source, source_type, serial_number, username, display_name,
                asset_tag, phone_number, os_version, model, raw_json, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    record.source,
                    record.source_type.value,
                    normalize_serial(record.serial_number),
                    record.username,
                    record.display_name,
                    record.asset_tag,
                    record.phone_number,
                    record.os_version,
                    record.model,
                    record.raw_json,
                    now,
                )
                for record in records
            ],
        )
        return len(records)

    def clear(self) -> None:
        self._db.execute("DELETE FROM inventory_records")


def _row_to_record(row: sqlite3.Row) -> InventoryRecord:
    try:
        source_type = InventorySourceType(row["source_type"])
    except ValueError:
        source_type = InventorySourceType.UNKNOWN
    return InventoryRecord(
        id=row["id"],
        source=row["source"],
        source_type=source_type,
        serial_number=row["serial_number"],
        username=row["username"],
        display_name=row["display_name"],
        asset_tag=row["asset_tag"],
        phone_number=row["phone_number"],
        os_version=row["os_version"],
        model=row["model"],
        raw_json=row["raw_json"],
    )
