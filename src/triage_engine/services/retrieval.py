"""Knowledge retrieval service."""

from triage_engine.core.interfaces import KBRepository
from triage_engine.core.models import DeviceType, KBSearchQuery, KBSearchResult

DEFAULT_LIMIT = 20


class KnowledgeRetrievalService:
    """Search entry point shared by the CLI, the API and the orchestrator."""

    def __init__(self, kb_repository: KBRepository) -> None:
        self._kb = kb_repository

    def search(
        self,
        query: str,
        preferred_device: DeviceType | None = None,
        preferred_app: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[KBSearchResult]:
        return self._kb.search(
            KBSearchQuery(text=query, preferred_device=preferred_device, preferred_app=preferred_app),
            limit=limit,
        )
