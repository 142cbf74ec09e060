"""Conversation orchestrator: one long-lived triage session."""

import structlog

from triage_engine.conversation.composer import ResponseComposer
from triage_engine.conversation.intake import IntakeStateMachine
from triage_engine.conversation.parser import TicketParser
from triage_engine.conversation.playbook import PlaybookBuilder
from triage_engine.core.interfaces import InventoryRepository, KBRepository
from triage_engine.core.models import (
    AssistantTurn,
    BotResponse,
    DeviceType,
    IntakeRecord,
    KBSearchQuery,
    KBSearchResult,
    SourceCitation,
    SupportWorkflowPolicy,
)

logger = structlog.get_logger(__name__)

SEARCH_LIMIT = 5
MAX_CITATIONS = 3
MAX_TICKET_CAUSES = 6

TICKET_ESCALATION_STEPS = [
    "I could not find a matching internal KB procedure for this issue.",
    "Escalate this ticket to Tier 2 with the intake details and captured error text.",
]
QUERY_ESCALATION_STEPS = [
    "I could not find this procedure in the internal KB.",
    "Open a support escalation and include exact error text, device type, serial, app, and Wi-Fi SSID.",
]
NO_MATCH_CAUSE = "No direct KB match was found for the supplied query."


class ConversationOrchestrator:
    """Sequences parse, merge, assess, retrieve and compose for each turn.

    Once a ticket identifier has been seen, every later turn runs the ticket
    workflow, which withholds retrieval until the intake is complete. Without
    a ticket, each message is treated as an ad-hoc KB query.
    """

    def __init__(
        self,
        kb_repository: KBRepository,
        inventory_repository: InventoryRepository,
        policy: SupportWorkflowPolicy | None = None,
    ) -> None:
        self._kb = kb_repository
        self._inventory = inventory_repository
        self._policy = policy or SupportWorkflowPolicy()
        self._parser = TicketParser(self._policy)
        self._state_machine = IntakeStateMachine()
        self._playbook = PlaybookBuilder()
        self._composer = ResponseComposer()
        self._session = IntakeRecord()

    @property
    def policy(self) -> SupportWorkflowPolicy:
        return self._policy

    def reset_session(self) -> None:
        self._session = IntakeRecord()

    def current_intake(self) -> IntakeRecord:
        return self._session.model_copy(deep=True)

    def handle(self, message: str) -> AssistantTurn:
        parsed = self._parser.parse(message)
        self._session.merge(parsed.intake)

        if parsed.is_ticket_message or self._session.ticket_number is not None:
            return self._handle_ticket(message)
        return self._handle_query(message)

    def _handle_ticket(self, message: str) -> AssistantTurn:
        intake = self._session
        log = logger.bind(ticket=intake.ticket_number)
        assessment = self._state_machine.assess(intake)

        if not assessment.is_ready:
            log.debug("conversation.ticket.incomplete", state=assessment.state.value)
            response = BotResponse(needed_info=self._state_machine.follow_up_prompts(assessment))
            return self._turn(response)

        query_text = " ".join(
            part
            for part in (
                intake.issue_description,
                intake.app_in_use,
                intake.device_type.value,
                message,
            )
            if part is not None
        )
        results = self._kb.search(
            KBSearchQuery(
                text=query_text,
                preferred_device=intake.device_type,
                preferred_app=intake.app_in_use,
            ),
            SEARCH_LIMIT,
        )

        top_article = results[0].article if results else None
        if top_article is not None:
            steps = self._playbook.steps(top_article)
        else:
            steps = list(TICKET_ESCALATION_STEPS)

        causes = self._playbook.possible_causes(intake, top_article)

        linked = self._inventory.linked_context(intake.normalized_serial, None)
        if linked.records:
            primary = linked.records[0]
            causes.insert(
                0,
                f"Inventory context matched {primary.source_type.value} record "
                f"'{primary.display_name or 'unknown'}' (confidence {linked.confidence:.2f}).",
            )

        log.info(
            "conversation.ticket.ready",
            results=len(results),
            linked_records=len(linked.records),
        )
        response = BotResponse(
            steps=steps,
            possible_causes=causes[:MAX_TICKET_CAUSES],
            citations=_citations(results),
        )
        return self._turn(response)

    def _handle_query(self, message: str) -> AssistantTurn:
        device = DeviceType.infer(message)
        results = self._kb.search(KBSearchQuery(text=message, preferred_device=device), SEARCH_LIMIT)

        if not results:
            logger.debug("conversation.query.no_match")
            response = BotResponse(
                steps=list(QUERY_ESCALATION_STEPS),
                possible_causes=[NO_MATCH_CAUSE],
            )
            return self._turn(response)

        top = results[0].article
        response = BotResponse(
            steps=self._playbook.steps(top),
            possible_causes=self._playbook.possible_causes(self._session, top),
            citations=_citations(results),
        )
        return self._turn(response)

    def _turn(self, response: BotResponse) -> AssistantTurn:
        return AssistantTurn(
            text=self._composer.render(response),
            response=response,
            intake=self.current_intake(),
        )


def _citations(results: list[KBSearchResult]) -> list[SourceCitation]:
    return [
        SourceCitation(title=result.article.title, path=result.article.source_path)
        for result in results[:MAX_CITATIONS]
    ]
