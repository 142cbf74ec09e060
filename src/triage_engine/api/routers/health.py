"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, status

from triage_engine.config import get_settings
from triage_engine.core.models import KBSearchQuery
from triage_engine.repositories.factory import RepositoryFactory

router = APIRouter()


@router.get("/health")
def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok"}


@router.get("/health/ready")
def readiness_check() -> dict[str, str | dict[str, str]]:
    """Readiness check - verifies the database and repositories respond."""
    settings = get_settings()
    checks: dict[str, str] = {}
    errors: dict[str, str] = {}
    factory = RepositoryFactory(settings)

    try:
        try:
            factory.get_database()
            checks["database"] = "ok"
        except Exception as exc:
            errors["database"] = exc.__class__.__name__

        try:
            factory.get_kb_repository().search(KBSearchQuery(text="health"), limit=1)
            checks["knowledge_base"] = "ok"
        except Exception as exc:
            errors["knowledge_base"] = exc.__class__.__name__

        try:
            factory.get_inventory_repository().linked_context(None, None)
            checks["inventory"] = "ok"
        except Exception as exc:
            errors["inventory"] = exc.__class__.__name__
    finally:
        factory.close()

    if errors:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": "error", "checks": {**checks, **errors}},
        )

    return {"status": "ok", "checks": checks}


@router.get("/health/live")
def liveness_check() -> dict[str, str]:
    """Liveness check - verifies the service is running."""
    return {"status": "ok"}
