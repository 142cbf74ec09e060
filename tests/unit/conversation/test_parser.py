"""Tests for the ticket message parser."""

import pytest

from triage_engine.conversation.parser import TicketParser
from triage_engine.core.models import DeviceType, SupportWorkflowPolicy

TICKET_MESSAGE = """##INC12345
Device: MacBook Pro
Serial: C02TEST12345
App: Outlook
SSID: TC-Corp
// User reports issue started after password change
Issue: Outlook keeps prompting for credentials"""


@pytest.mark.unit
class TestTicketParser:
    """Tests for TicketParser."""

    def test_extracts_header_annotations_and_fields(self) -> None:
        result = TicketParser().parse(TICKET_MESSAGE)

        assert result.is_ticket_message
        intake = result.intake
        assert intake.ticket_number == "INC12345"
        assert intake.device_type is DeviceType.MAC
        assert intake.serial_number == "C02TEST12345"
        assert intake.app_in_use == "Outlook"
        assert intake.wifi_ssid == "TC-Corp"
        assert intake.issue_description == "Outlook keeps prompting for credentials"
        assert intake.annotations == ["User reports issue started after password change"]

    def test_plain_message_is_not_a_ticket(self) -> None:
        result = TicketParser().parse("How do I reset my Outlook password on my iPhone?")

        assert not result.is_ticket_message
        assert result.intake.ticket_number is None
        assert result.intake.device_type is DeviceType.IPHONE
        assert result.intake.issue_description == "How do I reset my Outlook password on my iPhone?"

    def test_first_free_line_becomes_issue(self) -> None:
        result = TicketParser().parse("##42\nPrinter jams every morning\nAlso slow")

        assert result.intake.ticket_number == "42"
        assert result.intake.issue_description == "Printer jams every morning"

    def test_unknown_keys_are_ignored(self) -> None:
        result = TicketParser().parse("Color: blue\nSN: abc 123")

        assert result.intake.serial_number == "abc 123"
        assert result.intake.normalized_serial == "ABC123"
        assert result.intake.issue_description is None

    def test_non_apple_device(self) -> None:
        result = TicketParser().parse("Device: Dell Latitude")

        assert result.intake.device_type is DeviceType.NON_APPLE

    def test_policy_markers_are_configurable(self) -> None:
        policy = SupportWorkflowPolicy(ticket_prefix="!!", comment_prefix="%%")
        parser = TicketParser(policy)

        result = parser.parse("!!REQ7\n%% internal note\n## not a ticket marker here")

        assert result.intake.ticket_number == "REQ7"
        assert result.intake.annotations == ["internal note"]
        assert result.intake.issue_description == "## not a ticket marker here"
