"""Intake completeness state machine."""

from dataclasses import dataclass, field
from enum import Enum

from triage_engine.core.models import DeviceType, IntakeField, IntakeRecord


class IntakeState(str, Enum):
    UNKNOWN_OR_NON_APPLE = "unknown_or_non_apple"
    MISSING_SERIAL = "missing_serial"
    MISSING_ISSUE = "missing_issue"
    MISSING_APP_OR_SSID = "missing_app_or_ssid"
    READY = "ready"


@dataclass
class IntakeAssessment:
    state: IntakeState
    missing_fields: list[IntakeField] = field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.state is IntakeState.READY


MIN_ISSUE_LENGTH = 5

DEVICE_PROMPTS: tuple[str, ...] = (
    "What Apple device are you using (Mac, iPhone, or iPad), and what model if known?",
    "Please confirm this is Apple hardware before we continue with Apple-specific troubleshooting.",
)
SERIAL_PROMPT = (
    "Please share the serial number. If you cannot access it, "
    "provide the best available device identifier."
)
ISSUE_PROMPT = (
    "Please describe the issue in detail, including any exact error text "
    "and what you expected to happen."
)
APP_PROMPT = "Which app were you using when the issue occurred?"
SSID_PROMPT = "Which Wi-Fi SSID are you currently connected to?"


class IntakeStateMachine:
    """Decides what is still missing before troubleshooting can start.

    Checks run in a fixed order and the first failing one wins, so device
    legitimacy always gates the serial, issue and app/SSID checks.
    """

    def assess(self, intake: IntakeRecord) -> IntakeAssessment:
        if intake.device_type in (DeviceType.UNKNOWN, DeviceType.NON_APPLE):
            return IntakeAssessment(IntakeState.UNKNOWN_OR_NON_APPLE, [IntakeField.DEVICE_TYPE])

        if intake.normalized_serial is None:
            return IntakeAssessment(IntakeState.MISSING_SERIAL, [IntakeField.SERIAL_NUMBER])

        issue = (intake.issue_description or "").strip()
        if len(issue) < MIN_ISSUE_LENGTH:
            return IntakeAssessment(IntakeState.MISSING_ISSUE, [IntakeField.ISSUE_DESCRIPTION])

        missing = []
        if not (intake.app_in_use or "").strip():
            missing.append(IntakeField.APP_IN_USE)
        if not (intake.wifi_ssid or "").strip():
            missing.append(IntakeField.WIFI_SSID)
        if missing:
            return IntakeAssessment(IntakeState.MISSING_APP_OR_SSID, missing)

        return IntakeAssessment(IntakeState.READY, [])

    def follow_up_prompts(self, assessment: IntakeAssessment) -> list[str]:
        """Fixed, ordered prompts for the assessed state."""
        state = assessment.state
        if state is IntakeState.UNKNOWN_OR_NON_APPLE:
            return list(DEVICE_PROMPTS)
        if state is IntakeState.MISSING_SERIAL:
            return [SERIAL_PROMPT]
        if state is IntakeState.MISSING_ISSUE:
            return [ISSUE_PROMPT]
        if state is IntakeState.MISSING_APP_OR_SSID:
            prompts = []
            if IntakeField.APP_IN_USE in assessment.missing_fields:
                prompts.append(APP_PROMPT)
            if IntakeField.WIFI_SSID in assessment.missing_fields:
                prompts.append(SSID_PROMPT)
            return prompts
        return []
