"""FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from triage_engine.api.routers import health, search
from triage_engine.config import configure_logging, get_settings
from triage_engine.core.exceptions import NotFoundError, TriageEngineError, ValidationError

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger.info("api.started", sqlite_path=str(settings.sqlite_path))
    yield


app = FastAPI(title="Triage Engine", version="0.1.0", lifespan=lifespan)
app.include_router(health.router, tags=["health"])
app.include_router(search.router, tags=["search"])


@app.exception_handler(TriageEngineError)
async def triage_error_handler(request: Request, exc: TriageEngineError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 422
    else:
        status_code = 500
    logger.error("api.error", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=status_code, content={"detail": exc.message, "details": exc.details}
    )
