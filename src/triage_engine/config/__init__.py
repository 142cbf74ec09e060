"""Configuration for the triage engine."""

from triage_engine.config.logging import configure_logging
from triage_engine.config.policy import (
    discover_workflow_policy,
    load_workflow_policy,
    resolve_workflow_policy,
)
from triage_engine.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "configure_logging",
    "discover_workflow_policy",
    "get_settings",
    "load_workflow_policy",
    "resolve_workflow_policy",
]
