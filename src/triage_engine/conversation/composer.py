"""Plain-text rendering of structured responses."""

from triage_engine.core.models import BotResponse, SourceCitation

NO_CAUSES_PLACEHOLDER = "- No specific causes identified yet."


def format_citation(citation: SourceCitation) -> str:
    return f"- {citation.title} ({citation.path})"


class ResponseComposer:
    """Renders sections in a fixed order: steps, causes, needed info, sources."""

    def render(self, response: BotResponse) -> str:
        lines: list[str] = []

        if response.steps:
            lines.append("Troubleshooting steps")
            lines.extend(f"{index}. {step}" for index, step in enumerate(response.steps, 1))

        lines.append("Possible causes")
        if response.possible_causes:
            lines.extend(f"- {cause}" for cause in response.possible_causes)
        else:
            lines.append(NO_CAUSES_PLACEHOLDER)

        if response.needed_info:
            lines.append("What I need from you")
            lines.extend(f"- {item}" for item in response.needed_info)

        if response.citations:
            lines.append("Sources")
            lines.extend(format_citation(citation) for citation in response.citations)

        return "\n".join(lines)
