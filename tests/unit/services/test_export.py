"""Tests for ticket export rendering."""

import json

import pytest

from triage_engine.core.models import BotResponse, DeviceType, IntakeRecord, SourceCitation
from triage_engine.services.export import TicketExportService


@pytest.mark.unit
class TestTicketExportService:
    """Tests for TicketExportService."""

    def test_summary_lists_intake_then_sections(self) -> None:
        intake = IntakeRecord(
            ticket_number="INC1",
            device_type=DeviceType.MAC,
            serial_number="C02ABC12345",
            app_in_use="Outlook",
        )
        response = BotResponse(
            steps=["Open Outlook"],
            possible_causes=["Stale token"],
            needed_info=["Which Wi-Fi SSID are you currently connected to?"],
            citations=[SourceCitation(title="Outlook Login", path="kb/Outlook Login.json")],
        )

        text = TicketExportService().export_summary(intake, response)

        assert text.split("\n") == [
            "Ticket: INC1",
            "Device Type: mac",
            "Serial Number: C02ABC12345",
            "Issue: Not provided",
            "App In Use: Outlook",
            "Wi-Fi SSID: Not provided",
            "",
            "Troubleshooting steps",
            "1. Open Outlook",
            "",
            "Possible causes",
            "- Stale token",
            "",
            "What I need from you",
            "- Which Wi-Fi SSID are you currently connected to?",
            "",
            "Sources",
            "- Outlook Login (kb/Outlook Login.json)",
        ]

    def test_summary_without_ticket(self) -> None:
        text = TicketExportService().export_summary(IntakeRecord(), BotResponse())

        assert text.startswith("Device Type: unknown\nSerial Number: Unknown")

    def test_json_payload(self) -> None:
        response = BotResponse(
            steps=["Step"],
            citations=[SourceCitation(title="A", path="kb/a.md")],
        )

        payload = json.loads(TicketExportService().export_json(IntakeRecord(wifi_ssid="Corp"), response))

        assert payload["wifi_ssid"] == "Corp"
        assert payload["device_type"] == "unknown"
        assert payload["troubleshooting_steps"] == ["Step"]
        assert payload["requested_info"] == []
        assert payload["citations"] == [{"title": "A", "path": "kb/a.md"}]
