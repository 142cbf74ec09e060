"""Tests for the intake state machine."""

import pytest

from triage_engine.conversation import TicketParser
from triage_engine.conversation.intake import (
    APP_PROMPT,
    DEVICE_PROMPTS,
    ISSUE_PROMPT,
    SERIAL_PROMPT,
    SSID_PROMPT,
    IntakeState,
    IntakeStateMachine,
)
from triage_engine.core.models import DeviceType, IntakeField, IntakeRecord


@pytest.mark.unit
class TestIntakeStateMachine:
    """Tests for IntakeStateMachine."""

    def test_sequence_from_empty_to_ready(self) -> None:
        machine = IntakeStateMachine()
        intake = IntakeRecord()

        assert machine.assess(intake).state is IntakeState.UNKNOWN_OR_NON_APPLE

        intake.device_type = DeviceType.MAC
        assert machine.assess(intake).state is IntakeState.MISSING_SERIAL

        intake.serial_number = "C02TEST12345"
        assert machine.assess(intake).state is IntakeState.MISSING_ISSUE

        intake.issue_description = "Outlook authentication loop"
        assessment = machine.assess(intake)
        assert assessment.state is IntakeState.MISSING_APP_OR_SSID
        assert assessment.missing_fields == [IntakeField.APP_IN_USE, IntakeField.WIFI_SSID]

        intake.app_in_use = "Outlook"
        intake.wifi_ssid = "TC-Corp"
        assessment = machine.assess(intake)
        assert assessment.state is IntakeState.READY
        assert assessment.is_ready
        assert machine.follow_up_prompts(assessment) == []

    def test_non_apple_device_gates_everything(self) -> None:
        machine = IntakeStateMachine()
        intake = IntakeRecord(
            device_type=DeviceType.NON_APPLE,
            serial_number="X",
            issue_description="Broken screen",
            app_in_use="Teams",
            wifi_ssid="Corp",
        )

        assessment = machine.assess(intake)

        assert assessment.state is IntakeState.UNKNOWN_OR_NON_APPLE
        assert machine.follow_up_prompts(assessment) == list(DEVICE_PROMPTS)

    def test_short_issue_is_missing(self) -> None:
        machine = IntakeStateMachine()
        intake = IntakeRecord(device_type=DeviceType.IPAD, serial_number="DMP1", issue_description=" bad ")

        assessment = machine.assess(intake)

        assert assessment.state is IntakeState.MISSING_ISSUE
        assert machine.follow_up_prompts(assessment) == [ISSUE_PROMPT]

    def test_blank_serial_is_missing(self) -> None:
        machine = IntakeStateMachine()
        assessment = machine.assess(IntakeRecord(device_type=DeviceType.IPHONE, serial_number="   "))

        assert machine.follow_up_prompts(assessment) == [SERIAL_PROMPT]

    def test_prompts_only_for_missing_app_or_ssid(self) -> None:
        machine = IntakeStateMachine()
        intake = IntakeRecord(
            device_type=DeviceType.MAC,
            serial_number="C02",
            issue_description="VPN drops hourly",
            app_in_use="GlobalProtect",
        )

        assert machine.follow_up_prompts(machine.assess(intake)) == [SSID_PROMPT]

        intake.app_in_use = None
        intake.wifi_ssid = "Corp"
        assert machine.follow_up_prompts(machine.assess(intake)) == [APP_PROMPT]


def _populated() -> IntakeRecord:
    return IntakeRecord(
        ticket_number="INC1",
        device_type=DeviceType.MAC,
        serial_number="C02TEST12345",
        issue_description="Outlook keeps prompting for credentials",
        app_in_use="Outlook",
        wifi_ssid="TC-Corp",
        os_version="15.1",
        annotations=["first note"],
    )


@pytest.mark.unit
class TestIntakeRecordMerge:
    """Tests for folding parsed deltas into a session intake."""

    def test_empty_delta_leaves_intake_unchanged(self) -> None:
        intake = _populated()

        intake.merge(IntakeRecord())

        assert intake == _populated()

    def test_populated_fields_are_not_overwritten(self) -> None:
        intake = _populated()

        intake.merge(
            IntakeRecord(
                ticket_number="INC2",
                device_type=DeviceType.IPHONE,
                serial_number="DMP123456789",
                app_in_use="Teams",
            )
        )

        assert intake.ticket_number == "INC1"
        assert intake.device_type is DeviceType.MAC
        assert intake.serial_number == "C02TEST12345"
        assert intake.app_in_use == "Outlook"

    def test_deltas_for_different_fields_commute(self) -> None:
        serial_delta = IntakeRecord(serial_number="C02TEST12345")
        app_delta = IntakeRecord(app_in_use="Outlook", wifi_ssid="TC-Corp")

        first = IntakeRecord(device_type=DeviceType.MAC)
        first.merge(serial_delta)
        first.merge(app_delta)
        second = IntakeRecord(device_type=DeviceType.MAC)
        second.merge(app_delta)
        second.merge(serial_delta)

        assert first == second
        assert first.serial_number == "C02TEST12345"
        assert first.wifi_ssid == "TC-Corp"

    def test_annotations_concatenate_in_order(self) -> None:
        intake = IntakeRecord(annotations=["first"])

        intake.merge(IntakeRecord(annotations=["second"]))
        intake.merge(IntakeRecord(annotations=["third"]))

        assert intake.annotations == ["first", "second", "third"]

    def test_unknown_or_non_apple_device_is_replaced(self) -> None:
        intake = IntakeRecord(device_type=DeviceType.NON_APPLE)

        intake.merge(IntakeRecord(device_type=DeviceType.IPAD))
        intake.merge(IntakeRecord(device_type=DeviceType.MAC))

        assert intake.device_type is DeviceType.IPAD

    def test_ticket_message_then_cleared_issue_is_missing_issue(self) -> None:
        message = (
            "##INC12345\nDevice: MacBook Pro\nSerial: C02TEST12345\nApp: Outlook\n"
            "SSID: TC-Corp\n// started after password change\n"
            "Issue: Outlook keeps prompting for credentials"
        )
        intake = IntakeRecord()
        result = TicketParser().parse(message)
        intake.merge(result.intake)

        assert result.is_ticket_message
        assert intake.ticket_number == "INC12345"
        assert intake.device_type is DeviceType.MAC
        assert intake.serial_number == "C02TEST12345"

        intake.issue_description = None

        assert IntakeStateMachine().assess(intake).state is IntakeState.MISSING_ISSUE
