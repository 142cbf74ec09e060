"""Structured assistant output."""

from dataclasses import dataclass, field

from triage_engine.core.models.intake import IntakeRecord
from triage_engine.core.models.knowledge import SourceCitation


@dataclass
class BotResponse:
    """Sections of one assistant reply, before rendering."""

    steps: list[str] = field(default_factory=list)
    possible_causes: list[str] = field(default_factory=list)
    needed_info: list[str] = field(default_factory=list)
    citations: list[SourceCitation] = field(default_factory=list)


@dataclass
class AssistantTurn:
    """Rendered text plus the structured response and session intake."""

    text: str
    response: BotResponse
    intake: IntakeRecord
