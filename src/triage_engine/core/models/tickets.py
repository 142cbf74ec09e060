"""Tracked ticket and saved response template models."""

from datetime import datetime

from pydantic import BaseModel, Field


class TriageTicketRecord(BaseModel):
    """A ticket that has been triaged at least once."""

    id: int
    ticket_number: str
    source_text: str
    response_template: str
    resolution_summary: str | None = None
    missing_fields: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class SavedResponseTemplate(BaseModel):
    """A technician-defined response template with ``{{placeholder}}`` tokens."""

    id: int
    name: str
    body: str
    created_at: datetime
    updated_at: datetime
