"""Diagnostics log models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class DiagnosticLogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DiagnosticLogEntry(BaseModel):
    """A persisted diagnostics event."""

    id: int
    level: DiagnosticLogLevel
    category: str
    message: str
    details: str | None = None
    created_at: datetime
