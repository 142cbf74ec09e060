"""Ticket-ready text and JSON renderings of a triage session."""

import json

from triage_engine.conversation.composer import format_citation
from triage_engine.core.models import BotResponse, IntakeRecord


class TicketExportService:
    """Formats intake and response for pasting into a ticket or for archival."""

    def export_summary(self, intake: IntakeRecord, response: BotResponse) -> str:
        lines: list[str] = []
        if intake.ticket_number:
            lines.append(f"Ticket: {intake.ticket_number}")

        lines.append(f"Device Type: {intake.device_type.value}")
        lines.append(f"Serial Number: {intake.serial_number or 'Unknown'}")
        lines.append(f"Issue: {intake.issue_description or 'Not provided'}")
        lines.append(f"App In Use: {intake.app_in_use or 'Not provided'}")
        lines.append(f"Wi-Fi SSID: {intake.wifi_ssid or 'Not provided'}")
        lines.append("")

        lines.append("Troubleshooting steps")
        lines.extend(f"{index}. {step}" for index, step in enumerate(response.steps, start=1))

        lines.append("")
        lines.append("Possible causes")
        lines.extend(f"- {cause}" for cause in response.possible_causes)

        if response.needed_info:
            lines.append("")
            lines.append("What I need from you")
            lines.extend(f"- {item}" for item in response.needed_info)

        if response.citations:
            lines.append("")
            lines.append("Sources")
            lines.extend(format_citation(citation) for citation in response.citations)

        return "\n".join(lines)

    def export_payload(self, intake: IntakeRecord, response: BotResponse) -> dict:
        return {
            "ticket_number": intake.ticket_number,
            "device_type": intake.device_type.value,
            "serial_number": intake.serial_number,
            "issue_description": intake.issue_description,
            "app_in_use": intake.app_in_use,
            "wifi_ssid": intake.wifi_ssid,
            "troubleshooting_steps": list(response.steps),
            "possible_causes": list(response.possible_causes),
            "requested_info": list(response.needed_info),
            "citations": [
                {"title": citation.title, "path": citation.path} for citation in response.citations
            ],
        }

    def export_json(self, intake: IntakeRecord, response: BotResponse) -> str:
        return json.dumps(self.export_payload(intake, response))
