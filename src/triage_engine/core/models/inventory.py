"""Device and asset inventory models."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel


class InventorySourceType(str, Enum):
    """Which kind of export an inventory record came from."""

    MANAGED_MAC = "managedMac"
    MANAGED_MOBILE = "managedMobile"
    ASSET = "asset"
    APPLE_INTAKE = "appleIntake"
    UNKNOWN = "unknown"


class LookupField(str, Enum):
    """Field selector for inventory lookups."""

    SERIAL_NUMBER = "serial"
    DISPLAY_NAME = "display"
    USERNAME = "username"
    ASSET_TAG = "asset"
    PHONE_NUMBER = "phone"
    ANY = "any"


class InventoryRecord(BaseModel):
    """One flattened inventory row.

    ``serial_number`` is always stored normalized (no spaces, uppercase).
    ``raw_json`` keeps the original record with sorted keys for audit.
    """

    id: int | None = None
    source: str
    source_type: InventorySourceType = InventorySourceType.UNKNOWN
    serial_number: str | None = None
    username: str | None = None
    display_name: str | None = None
    asset_tag: str | None = None
    phone_number: str | None = None
    os_version: str | None = None
    model: str | None = None
    raw_json: str = "{}"


@dataclass
class InventoryLookupQuery:
    text: str
    field: LookupField = LookupField.ANY


@dataclass
class LinkedDeviceContext:
    """Inventory records correlated to a person or device."""

    records: list[InventoryRecord] = field(default_factory=list)
    confidence: float = 0.0
