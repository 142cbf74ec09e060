"""Ticket triage desk: one-shot triage of a pasted ticket.

Runs the conversation workflow on a ticket, pulls extra hints (location,
impact on other users, application vs device scope) from ``key: value``
lines, and produces three artifacts: a technician response template, an
end-user follow-up script and an export package joining both. The ticket
is then recorded in the triage history.
"""

import re
from dataclasses import dataclass, field

import structlog

from triage_engine.conversation.composer import format_citation
from triage_engine.conversation.orchestrator import ConversationOrchestrator
from triage_engine.core.exceptions import NotFoundError, ValidationError
from triage_engine.core.interfaces import (
    ResponseTemplateRepository,
    SupportLogger,
    TicketHistoryRepository,
)
from triage_engine.core.models import AssistantTurn, IntakeRecord, SavedResponseTemplate
from triage_engine.repositories.memory import NullLogger
from triage_engine.services.preferences import PreferencesStore

logger = structlog.get_logger(__name__)

LOCATION_KEYS = ("location", "site", "store", "office", "building")
OTHER_USERS_KEYS = (
    "other users",
    "is this happening to other users",
    "multiple users",
    "affecting others",
)
ISSUE_SCOPE_KEYS = ("issue scope", "scope", "problem type", "application or device")

APPLICATION_SCOPE = "Application"
DEVICE_SCOPE = "Device"

MISSING_SERIAL = "Serial Number"
MISSING_WIFI = "Wi-Fi Network In Use"
MISSING_LOCATION = "Location"
MISSING_OTHER_USERS = "Is this happening to other users?"
MISSING_SCOPE = "Is this an application issue or device issue?"

NOT_PROVIDED = "Not provided"
MISSING = "Missing"
RESOLUTION_PLACEHOLDER = "[Add final resolution before closing ticket]"
NO_CAUSES = "No specific causes identified yet."
DEFAULT_STEPS = (
    "Gather missing intake details listed above.",
    "Escalate to Tier 2 if no KB procedure matches.",
)

EMPATHY_OPENERS = (
    "I'm sorry you're experiencing this issue.",
    "I'm sorry this has been frustrating, and I appreciate your patience.",
    "I'm sorry you ran into this problem, and I want to help get this resolved quickly.",
    "I'm sorry this issue interrupted your work. Let's get it fixed as fast as possible.",
    "I'm sorry this happened, and I know how disruptive it can be.",
    "I'm sorry for the trouble you're dealing with. I'm here to help.",
    "I'm sorry you're impacted by this issue, and thank you for reporting it.",
)
EMPATHY_ROTATION_KEY = "empathy_rotation_index"

_BULLET_RE = re.compile(r"^[-*]\s*")


def normalize_ticket_number(raw: str) -> str:
    """Strip whitespace and drop every ``#`` and space."""
    return raw.strip().replace("#", "").replace(" ", "")


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def extract_keyed_value(source_text: str, keys: tuple[str, ...]) -> str | None:
    """Value of the first ``key: value`` line whose key matches, bullets allowed."""
    prefixes = [f"{key.lower()}:" for key in keys]
    for raw_line in source_text.splitlines():
        line = _BULLET_RE.sub("", raw_line.strip(), count=1)
        if not line:
            continue
        lower = line.lower()
        for prefix in prefixes:
            if lower.startswith(prefix):
                return _optional(line[len(prefix):])
    return None


def extract_location(source_text: str) -> str | None:
    return extract_keyed_value(source_text, LOCATION_KEYS)


def extract_other_users(source_text: str) -> str | None:
    """``Yes`` or ``No`` when the answer reads as one, else the raw answer.

    Matching is by substring, so any answer containing a ``y`` reads as Yes.
    """
    value = extract_keyed_value(source_text, OTHER_USERS_KEYS)
    if value is None:
        return None
    lower = value.lower()
    if "yes" in lower or "y" in lower or "true" in lower:
        return "Yes"
    if "no" in lower or "n" in lower or "false" in lower:
        return "No"
    return value


def normalize_issue_scope(raw: str) -> str | None:
    lower = raw.lower()
    if "app" in lower or "application" in lower or "software" in lower:
        return APPLICATION_SCOPE
    if "device" in lower or "hardware" in lower or "machine" in lower:
        return DEVICE_SCOPE
    return None


def extract_issue_scope(source_text: str, intake: IntakeRecord) -> str | None:
    value = extract_keyed_value(source_text, ISSUE_SCOPE_KEYS)
    if value is not None:
        return normalize_issue_scope(value)

    lower = source_text.lower()
    if any(phrase in lower for phrase in ("application issue", "app issue", "problem with the app")):
        return APPLICATION_SCOPE
    if any(
        phrase in lower
        for phrase in ("device issue", "hardware issue", "problem with the device")
    ):
        return DEVICE_SCOPE

    app = _optional(intake.app_in_use)
    if app and app.lower() in lower and "app" in lower:
        return APPLICATION_SCOPE
    return None


@dataclass
class TicketHints:
    location: str | None = None
    other_users: str | None = None
    issue_scope: str | None = None


def detect_missing_triage_data(turn: AssistantTurn, hints: TicketHints) -> list[str]:
    """Triage details still absent, followed by the workflow's own prompts."""
    missing: list[str] = []
    if turn.intake.normalized_serial is None:
        missing.append(MISSING_SERIAL)
    if _optional(turn.intake.wifi_ssid) is None:
        missing.append(MISSING_WIFI)
    if _optional(hints.location) is None:
        missing.append(MISSING_LOCATION)
    if _optional(hints.other_users) is None:
        missing.append(MISSING_OTHER_USERS)
    if _optional(hints.issue_scope) is None:
        missing.append(MISSING_SCOPE)
    missing.extend(prompt for prompt in turn.response.needed_info if prompt.strip())
    return list(dict.fromkeys(missing))


def _numbered(items: list[str]) -> list[str]:
    return [f"{index}. {item}" for index, item in enumerate(items, start=1)]


def render_default_template(
    turn: AssistantTurn,
    ticket_number: str,
    hints: TicketHints,
    missing_items: list[str],
    resolution_summary: str | None = None,
) -> str:
    """The built-in technician response template."""
    intake = turn.intake
    response = turn.response
    lines = [
        f"Ticket: {ticket_number}",
        "Triage Summary",
        f"- Issue: {intake.issue_description or NOT_PROVIDED}",
        f"- Device Type: {intake.device_type.value}",
        f"- Serial Number: {intake.serial_number or MISSING}",
        f"- Wi-Fi Network: {intake.wifi_ssid or MISSING}",
        f"- App In Use: {intake.app_in_use or MISSING}",
        f"- Location: {hints.location or MISSING}",
        f"- Other Users Impacted: {hints.other_users or MISSING}",
        f"- Scope (Application vs Device): {hints.issue_scope or MISSING}",
        "",
    ]

    if missing_items:
        lines.append("Missing Required Data")
        lines.extend(f"- {item}" for item in missing_items)
        lines.append("")

    lines.append("Recommended Troubleshooting Steps")
    lines.extend(_numbered(response.steps or list(DEFAULT_STEPS)))

    lines.append("")
    lines.append("Possible Causes")
    lines.extend(f"- {cause}" for cause in response.possible_causes or [NO_CAUSES])

    if response.citations:
        lines.append("")
        lines.append("Sources")
        lines.extend(format_citation(citation) for citation in response.citations)

    lines.append("")
    lines.append("Resolution")
    lines.append(_optional(resolution_summary) or RESOLUTION_PLACEHOLDER)
    return "\n".join(lines)


def render_saved_template(
    template: SavedResponseTemplate,
    turn: AssistantTurn,
    ticket_number: str,
    hints: TicketHints,
    missing_items: list[str],
    resolution_summary: str | None = None,
) -> str:
    """Substitute ``{{placeholder}}`` tokens in a saved template body."""
    intake = turn.intake
    response = turn.response
    replacements = {
        "{{ticket_number}}": ticket_number,
        "{{issue}}": intake.issue_description or NOT_PROVIDED,
        "{{device_type}}": intake.device_type.value,
        "{{serial_number}}": intake.serial_number or MISSING,
        "{{wifi_ssid}}": intake.wifi_ssid or MISSING,
        "{{app_in_use}}": intake.app_in_use or MISSING,
        "{{location}}": hints.location or MISSING,
        "{{other_users}}": hints.other_users or MISSING,
        "{{issue_scope}}": hints.issue_scope or MISSING,
        "{{steps}}": "\n".join(_numbered(response.steps)),
        "{{possible_causes}}": "\n".join(f"- {cause}" for cause in response.possible_causes),
        "{{missing_fields}}": "\n".join(f"- {item}" for item in missing_items),
        "{{sources}}": "\n".join(format_citation(citation) for citation in response.citations),
        "{{resolution}}": _optional(resolution_summary) or RESOLUTION_PLACEHOLDER,
    }
    rendered = template.body
    for token, value in replacements.items():
        rendered = rendered.replace(token, value)
    return rendered


def compose_export_package(end_user_script: str, technician_template: str) -> str:
    return "\n".join(
        ["End-User Follow-Up", end_user_script, "", "Technician Template", technician_template]
    )


@dataclass
class TriageResult:
    """Everything produced by triaging one ticket."""

    ticket_number: str
    source_text: str
    turn: AssistantTurn
    hints: TicketHints
    missing_items: list[str] = field(default_factory=list)
    technician_template: str = ""
    end_user_script: str = ""
    export_package: str = ""


class TriageDeskService:
    """Triage pasted tickets and keep their history.

    Each call starts a fresh conversation session so one ticket's intake
    never leaks into the next.
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        ticket_history: TicketHistoryRepository | None = None,
        templates: ResponseTemplateRepository | None = None,
        preferences: PreferencesStore | None = None,
        support_logger: SupportLogger | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._history = ticket_history
        self._templates = templates
        self._preferences = preferences
        self._support_logger = support_logger or NullLogger()
        self._openers: dict[str, str] = {}
        self._fallback_rotation = 0

    def compose_triage_message(self, ticket_number: str, body: str) -> str:
        return f"{self._orchestrator.policy.ticket_prefix}{ticket_number}\n{body}"

    def triage(
        self,
        ticket_number: str,
        body: str,
        template_id: int | None = None,
        resolution_summary: str | None = None,
    ) -> TriageResult:
        """Triage one ticket.

        Args:
            ticket_number: Ticket identifier; ``#`` and spaces are dropped.
            body: Pasted ticket text.
            template_id: Saved template to render instead of the default.
            resolution_summary: Resolution text to record, if known.

        Returns:
            The triage artifacts.

        Raises:
            ValidationError: If the body or ticket number is blank.
            NotFoundError: If ``template_id`` does not name a saved template.
        """
        source_text = body.strip()
        if not source_text:
            raise ValidationError("Paste the ticket details before running triage.")
        ticket = normalize_ticket_number(ticket_number)
        if not ticket:
            raise ValidationError("Enter a ticket number before running triage.")

        template = self._find_template(template_id) if template_id is not None else None

        self._orchestrator.reset_session()
        turn = self._orchestrator.handle(self.compose_triage_message(ticket, source_text))

        hints = TicketHints(
            location=extract_location(source_text),
            other_users=extract_other_users(source_text),
            issue_scope=extract_issue_scope(source_text, turn.intake),
        )
        missing = detect_missing_triage_data(turn, hints)

        if template is not None:
            technician_template = render_saved_template(
                template, turn, ticket, hints, missing, resolution_summary
            )
        else:
            technician_template = render_default_template(
                turn, ticket, hints, missing, resolution_summary
            )

        end_user_script = self.build_end_user_script(
            ticket, turn.intake.issue_description, missing
        )
        result = TriageResult(
            ticket_number=ticket,
            source_text=source_text,
            turn=turn,
            hints=hints,
            missing_items=missing,
            technician_template=technician_template,
            end_user_script=end_user_script,
            export_package=compose_export_package(end_user_script, technician_template),
        )

        self._record(result, resolution_summary)
        logger.info("triage.completed", ticket=ticket, missing=len(missing))
        self._support_logger.log(f"Ticket {ticket} triaged")
        return result

    def save_resolution(
        self,
        ticket_number: str,
        source_text: str,
        response_template: str,
        resolution_summary: str | None,
        missing_items: list[str] | None = None,
    ) -> None:
        """Update a tracked ticket with its resolution."""
        ticket = normalize_ticket_number(ticket_number)
        if not ticket:
            raise ValidationError("Enter a ticket number before saving a resolution.")
        if not source_text.strip():
            raise ValidationError("No ticket text is loaded for this ticket.")
        if not response_template.strip():
            raise ValidationError("Run triage first so there is a response template to track.")
        if self._history is None:
            return
        self._history.upsert(
            ticket,
            source_text.strip(),
            response_template.strip(),
            _optional(resolution_summary),
            list(missing_items or []),
        )
        self._support_logger.log(f"Resolution saved for ticket {ticket}")

    def build_end_user_script(
        self, ticket_number: str, issue_description: str | None, missing_items: list[str]
    ) -> str:
        lines = ["Hi,", "", self.empathy_opener(ticket_number)]

        issue = _optional(issue_description)
        if issue:
            lines.append(f"I reviewed ticket {ticket_number} regarding: {issue}.")
        else:
            lines.append(f"I reviewed ticket {ticket_number} and want to move this forward quickly.")

        if missing_items:
            lines.append("To continue, could you please provide the details below:")
            lines.extend(f"- {item}" for item in missing_items)
        else:
            lines.append(
                "At this time, I have the required intake details to continue troubleshooting."
            )
            lines.append(
                "If you can share any recent changes before the issue started, "
                "that can still help speed up resolution."
            )

        lines.append("")
        lines.append(
            "Thank you for your help. Once I have this information, "
            "I will continue troubleshooting right away."
        )
        return "\n".join(lines)

    def empathy_opener(self, ticket_number: str) -> str:
        """Opener phrase, stable per ticket and rotating across new tickets."""
        if ticket_number in self._openers:
            return self._openers[ticket_number]

        if self._preferences is not None:
            index = self._preferences.next_rotation(EMPATHY_ROTATION_KEY, len(EMPATHY_OPENERS))
        else:
            index = self._fallback_rotation
            self._fallback_rotation = (index + 1) % len(EMPATHY_OPENERS)

        phrase = EMPATHY_OPENERS[index]
        self._openers[ticket_number] = phrase
        return phrase

    def _find_template(self, template_id: int) -> SavedResponseTemplate:
        template = self._templates.get(template_id) if self._templates is not None else None
        if template is not None:
            return template
        raise NotFoundError(f"Template {template_id} not found", details={"id": template_id})

    def _record(self, result: TriageResult, resolution_summary: str | None) -> None:
        if self._history is None:
            return
        self._history.upsert(
            result.ticket_number,
            result.source_text,
            result.technician_template,
            _optional(resolution_summary),
            result.missing_items,
        )
