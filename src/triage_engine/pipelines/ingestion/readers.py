"""Readers that turn dataset files into knowledge base articles and inventory rows."""

import csv
import json
import uuid
import zipfile
from pathlib import Path
from typing import Any

import openpyxl
import structlog
from openpyxl.utils.exceptions import InvalidFileException

from triage_engine.core.exceptions import IngestionError, UnsupportedFormatError
from triage_engine.core.models import (
    InventoryRecord,
    InventorySourceType,
    KBArticle,
    normalize_serial,
)
from triage_engine.core.models.dataset import APPLE_INTAKE_FILENAME
from triage_engine.normalization import filename_tokens, normalize_article
from triage_engine.pipelines.ingestion.documents import DocumentTextService, split_frontmatter
from triage_engine.pipelines.ingestion.roles import (
    KNOWLEDGE_EXTENSIONS,
    inferred_type,
    inventory_source_type,
    is_inventory_like,
)

logger = structlog.get_logger(__name__)

SERIAL_KEYS = ("Serial Number", "serial_number", "Serial")
USERNAME_KEYS = ("Username", "Full Name", "User.Name", "Associated To.Name", "Last Logged-in User")
DISPLAY_NAME_KEYS = ("Computer Name", "Display Name", "Name", "Device/Item")
ASSET_TAG_KEYS = ("AssetTag", "Asset Tag", "Scan")
PHONE_KEYS = ("Device Phone Number", "Phone", "phone_number")
OS_VERSION_KEYS = ("Operating System Version", "OS Version", "os_version")
MODEL_KEYS = ("Model", "Product.Product Name", "Device/Item", "Product Type.Product Type")

ARTICLE_TITLE_KEYS = ("title", "name", "topic")
ARTICLE_TEXT_KEYS = ("text", "body", "content", "description", "summary")
MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})


# -- shared helpers ---------------------------------------------------------


def first_string(record: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    """First non-empty value among ``keys``; non-strings are stringified."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        text = (value if isinstance(value, str) else str(value)).strip()
        if text:
            return text
    return None


def read_jsonl_objects(path: Path) -> list[dict[str, Any]]:
    """Decode each non-blank line; every line must be a JSON object."""
    objects = []
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except ValueError as e:
                raise IngestionError(
                    f"Invalid JSON on line {line_number} of {path.name}",
                    details={"path": str(path), "line": line_number},
                ) from e
            if not isinstance(payload, dict):
                raise IngestionError(
                    f"Line {line_number} of {path.name} is not a JSON object",
                    details={"path": str(path), "line": line_number},
                )
            objects.append(payload)
    return objects


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise IngestionError(f"Invalid JSON in {path.name}", details={"path": str(path)}) from e


def read_csv_rows(path: Path) -> list[dict[str, str]]:
    """Header-keyed rows; short rows are padded with empty strings."""
    with path.open(encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle, restval="", skipinitialspace=True)
        if not reader.fieldnames or not any(name.strip() for name in reader.fieldnames):
            raise IngestionError(f"Missing CSV header in {path.name}", details={"path": str(path)})
        rows = []
        for row in reader:
            rows.append(
                {
                    (key or "").strip(): (value or "").strip()
                    for key, value in row.items()
                    if key is not None
                }
            )
        return rows


def read_xlsx_rows(path: Path) -> list[dict[str, Any]]:
    """Rows of the first worksheet keyed by its header row.

    Raises:
        IngestionError: The workbook is corrupt, not a workbook, or has no header.
    """
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
        raise IngestionError(
            f"Unreadable workbook {path.name}: {e}", details={"path": str(path)}
        ) from e
    try:
        return _worksheet_records(workbook, path)
    except (zipfile.BadZipFile, KeyError, ValueError, IndexError) as e:
        raise IngestionError(
            f"Unreadable worksheet in {path.name}: {e}", details={"path": str(path)}
        ) from e
    finally:
        workbook.close()


def _worksheet_records(workbook: Any, path: Path) -> list[dict[str, Any]]:
    sheet = workbook.worksheets[0]
    rows = sheet.iter_rows(values_only=True)
    header = next(rows, None)
    if not header:
        raise IngestionError(f"Missing header row in {path.name}", details={"path": str(path)})
    columns = [str(cell).strip() if cell is not None else "" for cell in header]
    records = []
    for values in rows:
        if values is None or all(value is None for value in values):
            continue
        records.append(
            {
                column: value
                for column, value in zip(columns, values)
                if column
            }
        )
    return records


def extract_record_dictionaries(payload: Any) -> list[dict[str, Any]]:
    """Flatten the JSON container shapes inventory exports come in."""
    if isinstance(payload, dict):
        if isinstance(payload.get("record"), dict):
            return [payload["record"]]
        for key in ("records", "data"):
            items = payload.get(key)
            if isinstance(items, list):
                return [item for item in items if isinstance(item, dict)]
        return [payload]
    if isinstance(payload, list):
        records = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            nested = item.get("record")
            records.append(nested if isinstance(nested, dict) else item)
        return records
    return []


# -- inventory --------------------------------------------------------------


def normalize_inventory_record(
    record: dict[str, Any], source: str, source_type: InventorySourceType
) -> InventoryRecord:
    """Map a raw export row onto the common inventory shape."""
    model = first_string(record, MODEL_KEYS)
    return InventoryRecord(
        source=source,
        source_type=source_type,
        serial_number=normalize_serial(first_string(record, SERIAL_KEYS)),
        username=first_string(record, USERNAME_KEYS),
        display_name=first_string(record, DISPLAY_NAME_KEYS),
        asset_tag=first_string(record, ASSET_TAG_KEYS),
        phone_number=first_string(record, PHONE_KEYS),
        os_version=first_string(record, OS_VERSION_KEYS),
        model=model or source_type.value,
        raw_json=json.dumps(record, sort_keys=True, default=str),
    )


class InventoryReader:
    """Reads inventory rows from JSONL, JSON, CSV and spreadsheet exports.

    Every record produced for a file carries the file name as its source,
    except JSONL wrappers, which may name their own ``source``.
    """

    def read(self, path: Path, fallback_type: InventorySourceType) -> list[InventoryRecord]:
        ext = path.suffix.lower()
        if ext == ".jsonl":
            return self._read_jsonl(path, fallback_type)
        if ext == ".json":
            return self._read_json(path, fallback_type)
        if ext == ".csv":
            return self._read_tabular(read_csv_rows(path), path, fallback_type)
        if ext == ".xlsx":
            return self._read_tabular(read_xlsx_rows(path), path, fallback_type)
        if ext == ".xls":
            return self._read_legacy_spreadsheet(path)
        raise UnsupportedFormatError(
            f"Unsupported inventory file format: {ext or path.name}",
            details={"path": str(path)},
        )

    def _read_jsonl(
        self, path: Path, fallback_type: InventorySourceType, source_override: str | None = None
    ) -> list[InventoryRecord]:
        records = []
        for obj in read_jsonl_objects(path):
            type_text = obj.get("type") if isinstance(obj.get("type"), str) else ""
            source_type = inventory_source_type(type_text, fallback_type)
            source = obj.get("source") if isinstance(obj.get("source"), str) else None
            record = obj["record"] if isinstance(obj.get("record"), dict) else obj
            records.append(
                normalize_inventory_record(
                    record, source_override or source or path.name, source_type
                )
            )
        return records

    def _read_json(self, path: Path, fallback_type: InventorySourceType) -> list[InventoryRecord]:
        records = []
        for record in extract_record_dictionaries(read_json(path)):
            type_text = first_string(record, ("type", "source_type")) or ""
            records.append(
                normalize_inventory_record(
                    record, path.name, inventory_source_type(type_text, fallback_type)
                )
            )
        return records

    def _read_tabular(
        self, rows: list[dict[str, Any]], path: Path, fallback_type: InventorySourceType
    ) -> list[InventoryRecord]:
        source_type = inferred_type(path.name, fallback_type)
        return [normalize_inventory_record(row, path.name, source_type) for row in rows]

    def _read_legacy_spreadsheet(self, path: Path) -> list[InventoryRecord]:
        # Binary .xls is not parsed; a sibling JSONL export stands in for it.
        sibling = path.parent / APPLE_INTAKE_FILENAME
        if sibling.is_file():
            logger.info("inventory.xls_fallback", path=str(path), fallback=sibling.name)
            return self._read_jsonl(
                sibling, InventorySourceType.APPLE_INTAKE, source_override=path.name
            )
        raise UnsupportedFormatError(
            "XLS parsing requires a compatible JSONL export "
            f"(for example {APPLE_INTAKE_FILENAME}).",
            details={"path": str(path)},
        )


# -- knowledge base ---------------------------------------------------------


def _string_list(value: Any) -> list[str] | None:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None


def json_object_to_article(
    obj: dict[str, Any], default_source: str, default_title: str
) -> KBArticle | None:
    """Build an article from one JSON object; None when it holds no text."""
    article_id = obj["id"] if isinstance(obj.get("id"), str) else str(uuid.uuid4())
    title = first_string(obj, ARTICLE_TITLE_KEYS) or default_title
    tags = _string_list(obj.get("tags"))
    if tags is None:
        tags = filename_tokens(Path(default_source))

    text = first_string(obj, ARTICLE_TEXT_KEYS) or ""
    steps = obj.get("steps")
    if not text and isinstance(steps, list):
        text = "\n".join(str(step) for step in steps)
    if not text.strip():
        text = json.dumps(obj, indent=2, sort_keys=True, default=str)

    text = text.strip()
    if not text:
        return None
    return normalize_article(article_id, title, text, default_source, tags)


class KnowledgeBaseReader:
    """Reads articles from JSONL corpora, JSON documents and document files."""

    def __init__(self, documents: DocumentTextService | None = None) -> None:
        self._documents = documents or DocumentTextService()

    def read(self, path: Path) -> list[KBArticle]:
        ext = path.suffix.lower()
        if ext == ".jsonl":
            return self._read_jsonl(path)
        if ext == ".json":
            return self._read_json(path)
        if ext in KNOWLEDGE_EXTENSIONS:
            return self._read_document(path)
        if path.is_dir():
            return [
                article
                for child in sorted(path.iterdir())
                if not child.name.startswith(".")
                for article in self.read(child)
            ]
        raise UnsupportedFormatError(
            f"Unsupported knowledge base input: {path.name}", details={"path": str(path)}
        )

    def _read_jsonl(self, path: Path) -> list[KBArticle]:
        articles = []
        for obj in read_jsonl_objects(path):
            if is_inventory_like(obj):
                continue
            article = json_object_to_article(
                obj,
                default_source=obj["source_path"] if isinstance(obj.get("source_path"), str) else str(path),
                default_title="Untitled",
            )
            if article is not None:
                articles.append(article)
        return articles

    def _read_json(self, path: Path) -> list[KBArticle]:
        payload = read_json(path)
        source, title = str(path), path.stem

        if isinstance(payload, list):
            objects = [item for item in payload if isinstance(item, dict)]
        elif isinstance(payload, dict) and isinstance(payload.get("articles"), list):
            objects = [item for item in payload["articles"] if isinstance(item, dict)]
        elif isinstance(payload, dict) and not is_inventory_like(payload):
            objects = [payload]
        else:
            objects = []

        articles = (json_object_to_article(obj, source, title) for obj in objects)
        return [article for article in articles if article is not None]

    def _read_document(self, path: Path) -> list[KBArticle]:
        text = self._documents.extract_text(path)
        if not text:
            return []

        title = path.stem
        tags = filename_tokens(path)
        if path.suffix.lower() in MARKDOWN_EXTENSIONS:
            meta, text = split_frontmatter(text)
            if isinstance(meta.get("title"), str) and meta["title"].strip():
                title = meta["title"].strip()
            tags = _string_list(meta.get("tags")) or tags
            text = text.strip()
            if not text:
                return []

        return [normalize_article(str(uuid.uuid4()), title, text, str(path), tags)]
