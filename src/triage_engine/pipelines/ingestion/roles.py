"""Classify dataset files as policy, knowledge base or inventory sources."""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from triage_engine.core.models import InventorySourceType

KNOWLEDGE_EXTENSIONS = frozenset({".txt", ".md", ".markdown", ".pdf", ".docx", ".doc", ".rtf", ".log"})
SPREADSHEET_EXTENSIONS = frozenset({".csv", ".xlsx", ".xls"})
JSON_EXTENSIONS = frozenset({".json", ".jsonl"})

POLICY_NAME_MARKER = "cw-support-instructions"

INVENTORY_KEYS = frozenset(
    {
        "serial number",
        "serial_number",
        "computer name",
        "display name",
        "device phone number",
        "username",
        "user.name",
        "assettag",
        "asset tag",
        "operating system version",
        "os version",
        "model",
        "full name",
        "device/item",
        "scan",
    }
)
_INVENTORY_TYPE_HINTS = ("managed", "asset", "inventory", "intake")


class RoleKind(str, Enum):
    WORKFLOW_POLICY = "workflow_policy"
    KNOWLEDGE_BASE = "knowledge_base"
    INVENTORY = "inventory"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class DatasetRole:
    """How a file is routed; ``source_type`` is the inventory fallback type."""

    kind: RoleKind
    source_type: InventorySourceType | None = None


def inferred_type(filename: str, fallback: InventorySourceType) -> InventorySourceType:
    """Guess an inventory type from a file name."""
    lower = filename.lower()
    if "mac" in lower:
        return InventorySourceType.MANAGED_MAC
    if "mobile" in lower or "iphone" in lower or "ipad" in lower:
        return InventorySourceType.MANAGED_MOBILE
    if "asset" in lower:
        return InventorySourceType.ASSET
    if "intake" in lower or "apple" in lower:
        return InventorySourceType.APPLE_INTAKE
    return fallback


def inventory_source_type(type_text: str, fallback: InventorySourceType) -> InventorySourceType:
    """Map an exported ``type`` label to a source type."""
    lower = type_text.lower()
    if "managed_mac" in lower:
        return InventorySourceType.MANAGED_MAC
    if "managed_mobile" in lower or "mobile" in lower:
        return InventorySourceType.MANAGED_MOBILE
    if "asset" in lower:
        return InventorySourceType.ASSET
    if "intake" in lower:
        return InventorySourceType.APPLE_INTAKE
    return fallback


def is_inventory_like(record: dict[str, Any]) -> bool:
    """Heuristic: known inventory column names or an inventory-ish ``type``."""
    keys = {str(key).lower() for key in record}
    if keys & INVENTORY_KEYS:
        return True
    type_value = record.get("type")
    if isinstance(type_value, str):
        lower = type_value.lower()
        return any(hint in lower for hint in _INVENTORY_TYPE_HINTS)
    return False


def _first_non_empty_line(path: Path) -> str | None:
    with path.open(encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                return line
    return None


def _sample_record(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, list):
        first = payload[0] if payload else None
        return first if isinstance(first, dict) else None
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("record"), dict):
        return payload["record"]
    for key in ("records", "data"):
        items = payload.get(key)
        if isinstance(items, list) and items and isinstance(items[0], dict):
            return items[0]
    return payload


def looks_like_inventory_json(path: Path) -> bool:
    """Peek at the first record of a JSON or JSONL file.

    Unreadable or malformed files are not inventory.
    """
    try:
        if path.suffix.lower() == ".jsonl":
            line = _first_non_empty_line(path)
            if line is None:
                return False
            payload = json.loads(line)
            if not isinstance(payload, dict):
                return False
        else:
            payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False

    record = _sample_record(payload)
    return record is not None and is_inventory_like(record)


def detect_role(path: Path, workflow_policy_path: Path | None) -> DatasetRole:
    """Route a discovered file by name, extension and content."""
    if workflow_policy_path is not None and path.resolve() == workflow_policy_path.resolve():
        return DatasetRole(RoleKind.WORKFLOW_POLICY)
    if POLICY_NAME_MARKER in path.name.lower():
        return DatasetRole(RoleKind.WORKFLOW_POLICY)

    ext = path.suffix.lower()
    if ext in KNOWLEDGE_EXTENSIONS:
        return DatasetRole(RoleKind.KNOWLEDGE_BASE)

    inventory = DatasetRole(
        RoleKind.INVENTORY, inferred_type(path.name, InventorySourceType.ASSET)
    )
    if ext in SPREADSHEET_EXTENSIONS:
        return inventory
    if ext in JSON_EXTENSIONS:
        return inventory if looks_like_inventory_json(path) else DatasetRole(RoleKind.KNOWLEDGE_BASE)

    return DatasetRole(RoleKind.UNSUPPORTED)
