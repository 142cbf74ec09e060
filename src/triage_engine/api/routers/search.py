"""Knowledge base search and inventory endpoints."""

from collections.abc import Iterator
from typing import Any

from fastapi import APIRouter, Depends, Query

from triage_engine.config import get_settings
from triage_engine.core.models import (
    DeviceType,
    InventoryLookupQuery,
    InventoryRecord,
    LookupField,
)
from triage_engine.repositories.factory import RepositoryFactory
from triage_engine.services.retrieval import KnowledgeRetrievalService

router = APIRouter()


def get_factory() -> Iterator[RepositoryFactory]:
    """Per-request repository factory."""
    factory = RepositoryFactory(get_settings())
    try:
        yield factory
    finally:
        factory.close()


def _record_payload(record: InventoryRecord) -> dict[str, Any]:
    return record.model_dump(mode="json", exclude={"raw_json"})


@router.get("/search")
def search(
    q: str = Query(..., min_length=1, description="Free-text query"),
    device: DeviceType | None = None,
    app: str | None = None,
    limit: int = Query(default=5, ge=1, le=100),
    factory: RepositoryFactory = Depends(get_factory),
) -> dict[str, Any]:
    """Ranked KB articles for a query."""
    service = KnowledgeRetrievalService(factory.get_kb_repository())
    results = service.search(q, preferred_device=device, preferred_app=app, limit=limit)
    return {
        "query": q,
        "results": [
            {
                "id": result.article.id,
                "title": result.article.title,
                "source_path": result.article.source_path,
                "score": round(result.score, 6),
                "platforms": result.article.platforms,
                "apps": result.article.apps,
            }
            for result in results
        ],
    }


@router.get("/inventory/lookup")
def inventory_lookup(
    q: str = Query(..., description="Lookup text"),
    field: LookupField = LookupField.ANY,
    limit: int = Query(default=25, ge=1, le=500),
    factory: RepositoryFactory = Depends(get_factory),
) -> dict[str, Any]:
    """Inventory records matching a field."""
    records = factory.get_inventory_repository().lookup(
        InventoryLookupQuery(text=q, field=field), limit=limit
    )
    return {"query": q, "field": field.value, "records": [_record_payload(r) for r in records]}


@router.get("/inventory/link")
def inventory_link(
    serial: str | None = None,
    username: str | None = None,
    factory: RepositoryFactory = Depends(get_factory),
) -> dict[str, Any]:
    """Records linked to a serial number and/or username, with confidence."""
    context = factory.get_inventory_repository().linked_context(serial, username)
    return {
        "confidence": context.confidence,
        "records": [_record_payload(record) for record in context.records],
    }
