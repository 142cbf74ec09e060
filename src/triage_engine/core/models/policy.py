"""Support workflow policy."""

from pydantic import BaseModel, Field

from triage_engine.core.models.intake import IntakeField

DEFAULT_PLATFORMS = ["macOS", "iOS", "iPadOS"]
DEFAULT_DEVICE_REQUIREMENT = "Must be Apple hardware"
DEFAULT_TICKET_PREFIX = "##"
DEFAULT_COMMENT_PREFIX = "//"


class SupportWorkflowPolicy(BaseModel):
    """Rules that drive ticket detection and intake validation."""

    supported_platforms: list[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    device_requirement: str = DEFAULT_DEVICE_REQUIREMENT
    ticket_prefix: str = DEFAULT_TICKET_PREFIX
    comment_prefix: str = DEFAULT_COMMENT_PREFIX
    required_fields: list[IntakeField] = Field(default_factory=lambda: list(IntakeField))
