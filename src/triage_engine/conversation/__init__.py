"""Conversation handling: parsing, intake assessment and response building."""

from triage_engine.conversation.composer import ResponseComposer
from triage_engine.conversation.intake import IntakeAssessment, IntakeState, IntakeStateMachine
from triage_engine.conversation.orchestrator import ConversationOrchestrator
from triage_engine.conversation.parser import KEY_SYNONYMS, ParseResult, TicketParser
from triage_engine.conversation.playbook import PlaybookBuilder

__all__ = [
    "ConversationOrchestrator",
    "IntakeAssessment",
    "IntakeState",
    "IntakeStateMachine",
    "KEY_SYNONYMS",
    "ParseResult",
    "PlaybookBuilder",
    "ResponseComposer",
    "TicketParser",
]
