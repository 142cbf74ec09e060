"""Intake models: what the triage workflow knows about a ticket."""

from enum import Enum

from pydantic import BaseModel, Field


class DeviceType(str, Enum):
    """Device category reported by (or inferred for) the end user."""

    MAC = "mac"
    IPHONE = "iPhone"
    IPAD = "iPad"
    UNKNOWN = "unknown"
    NON_APPLE = "nonApple"

    @classmethod
    def infer(cls, raw: str | None) -> "DeviceType":
        """Infer a device category from free-form text.

        Matching is substring based and ordered: any mention of a Mac wins
        over iPhone, which wins over iPad. Non-empty text with no Apple
        keyword is treated as non-Apple hardware.
        """
        if raw is None:
            return cls.UNKNOWN
        normalized = raw.strip().lower()
        if "mac" in normalized or "macbook" in normalized or "imac" in normalized:
            return cls.MAC
        if "iphone" in normalized:
            return cls.IPHONE
        if "ipad" in normalized:
            return cls.IPAD
        if not normalized:
            return cls.UNKNOWN
        return cls.NON_APPLE

    @property
    def is_apple_hardware(self) -> bool:
        return self in (DeviceType.MAC, DeviceType.IPHONE, DeviceType.IPAD)

    @property
    def platform_token(self) -> str | None:
        """Platform name fragment used when boosting KB matches."""
        return _PLATFORM_TOKENS.get(self)


_PLATFORM_TOKENS = {
    DeviceType.MAC: "macos",
    DeviceType.IPHONE: "ios",
    DeviceType.IPAD: "ipados",
}


class IntakeField(str, Enum):
    """Canonical names of the details required before troubleshooting."""

    DEVICE_TYPE = "device_type"
    SERIAL_NUMBER = "serial_number"
    ISSUE_DESCRIPTION = "issue_description"
    APP_IN_USE = "app_in_use_at_time_of_issue"
    WIFI_SSID = "wifi_ssid_connected_to"


def normalize_serial(value: str | None) -> str | None:
    """Remove spaces and uppercase; blank serials become None."""
    if value is None:
        return None
    normalized = value.replace(" ", "").upper()
    return normalized or None


def _is_blank(value: str | None) -> bool:
    return not value


class IntakeRecord(BaseModel):
    """Accumulated intake for one triage session."""

    ticket_number: str | None = None
    device_type: DeviceType = DeviceType.UNKNOWN
    serial_number: str | None = None
    issue_description: str | None = None
    app_in_use: str | None = None
    wifi_ssid: str | None = None
    os_version: str | None = None
    annotations: list[str] = Field(default_factory=list)

    @property
    def normalized_serial(self) -> str | None:
        return normalize_serial(self.serial_number)

    def merge(self, other: "IntakeRecord") -> None:
        """Fold a freshly parsed delta into this intake.

        Values already present are kept. The device is only replaced while
        it is still unknown or non-Apple. Annotations accumulate in order.
        """
        if self.ticket_number is None:
            self.ticket_number = other.ticket_number
        if (
            self.device_type in (DeviceType.UNKNOWN, DeviceType.NON_APPLE)
            and other.device_type is not DeviceType.UNKNOWN
        ):
            self.device_type = other.device_type
        if _is_blank(self.serial_number):
            self.serial_number = other.serial_number
        if _is_blank(self.issue_description):
            self.issue_description = other.issue_description
        if _is_blank(self.app_in_use):
            self.app_in_use = other.app_in_use
        if _is_blank(self.wifi_ssid):
            self.wifi_ssid = other.wifi_ssid
        if _is_blank(self.os_version):
            self.os_version = other.os_version
        self.annotations.extend(other.annotations)
