"""Message parser: free-form chat or ticket text to an intake delta."""

import re
from dataclasses import dataclass

from triage_engine.core.models import DeviceType, IntakeRecord, SupportWorkflowPolicy

# Lowercased key -> intake attribute. "device_type" values go through DeviceType.infer.
KEY_SYNONYMS: dict[str, str] = {
    "serial": "serial_number",
    "serial number": "serial_number",
    "sn": "serial_number",
    "device": "device_type",
    "device type": "device_type",
    "model": "device_type",
    "issue": "issue_description",
    "issue description": "issue_description",
    "problem": "issue_description",
    "error": "issue_description",
    "app": "app_in_use",
    "application": "app_in_use",
    "app in use": "app_in_use",
    "ssid": "wifi_ssid",
    "wifi": "wifi_ssid",
    "wi-fi": "wifi_ssid",
    "wifi ssid": "wifi_ssid",
    "os": "os_version",
    "os version": "os_version",
}

_KEY_VALUE_RE = re.compile(r"^([A-Za-z _-]+):\s*(.+)$")


@dataclass
class ParseResult:
    intake: IntakeRecord
    is_ticket_message: bool


class TicketParser:
    """Deterministic parser for one message.

    A message is a ticket message when its first line starts with the
    policy's ticket marker followed by an identifier, e.g. ``##INC12345``.
    Lines starting with the comment marker become annotations and
    ``key: value`` lines are mapped through ``KEY_SYNONYMS``. Remaining
    lines are issue candidates.
    """

    def __init__(self, policy: SupportWorkflowPolicy | None = None) -> None:
        self._policy = policy or SupportWorkflowPolicy()
        self._ticket_re = re.compile(rf"^{re.escape(self._policy.ticket_prefix)}\s*(\w+)")

    @property
    def policy(self) -> SupportWorkflowPolicy:
        return self._policy

    def parse(self, message: str) -> ParseResult:
        lines = message.splitlines()
        intake = IntakeRecord()
        comment_prefix = self._policy.comment_prefix

        if lines:
            intake.ticket_number = self._extract_ticket_number(lines[0])

        issue_candidates: list[str] = []
        for line in lines:
            trimmed = line.strip()
            if not trimmed:
                continue

            if comment_prefix and trimmed.startswith(comment_prefix):
                annotation = trimmed[len(comment_prefix):].strip()
                if annotation:
                    intake.annotations.append(annotation)
                continue

            if self._extract_ticket_number(trimmed) is not None:
                continue

            key_value = _parse_key_value(trimmed)
            if key_value is not None:
                _assign(intake, *key_value)
                continue

            issue_candidates.append(trimmed)

        if intake.device_type is DeviceType.UNKNOWN:
            intake.device_type = DeviceType.infer(message)

        if intake.issue_description is None:
            intake.issue_description = next(
                (
                    line
                    for line in issue_candidates
                    if not (comment_prefix and line.startswith(comment_prefix))
                ),
                None,
            )

        return ParseResult(intake=intake, is_ticket_message=intake.ticket_number is not None)

    def _extract_ticket_number(self, line: str) -> str | None:
        match = self._ticket_re.match(line)
        return match.group(1) if match else None


def _parse_key_value(line: str) -> tuple[str, str] | None:
    match = _KEY_VALUE_RE.match(line)
    if not match:
        return None
    key = match.group(1).strip()
    value = match.group(2).strip()
    if not value:
        return None
    return key, value


def _assign(intake: IntakeRecord, key: str, value: str) -> None:
    attribute = KEY_SYNONYMS.get(key.lower())
    if attribute is None:
        return
    if attribute == "device_type":
        intake.device_type = DeviceType.infer(value)
    else:
        setattr(intake, attribute, value)
