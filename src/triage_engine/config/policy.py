"""Loading the support workflow policy document."""

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, ValidationError

from triage_engine.core.models import DataPackConfiguration, IntakeField, SupportWorkflowPolicy
from triage_engine.core.models.policy import DEFAULT_COMMENT_PREFIX, DEFAULT_TICKET_PREFIX

logger = structlog.get_logger(__name__)


class _Scope(BaseModel):
    supported_platforms: list[str]
    device_requirement: str


class _TicketDetection(BaseModel):
    trigger_format: str


class _UserAnnotations(BaseModel):
    comment_prefix: str


class _IntakeAndValidation(BaseModel):
    required_details: list[str]


class InstructionDocument(BaseModel):
    """Schema of ``cw-support-instructions.json``. Unknown keys are ignored."""

    scope: _Scope
    ticket_detection: _TicketDetection
    user_annotations: _UserAnnotations
    intake_and_validation: _IntakeAndValidation

    def to_policy(self) -> SupportWorkflowPolicy:
        known = {field.value: field for field in IntakeField}
        fields = [known[name] for name in self.intake_and_validation.required_details if name in known]
        ticket_prefix = self.ticket_detection.trigger_format[:2]
        comment_prefix = self.user_annotations.comment_prefix
        return SupportWorkflowPolicy(
            supported_platforms=self.scope.supported_platforms,
            device_requirement=self.scope.device_requirement,
            ticket_prefix=ticket_prefix if ticket_prefix.strip() else DEFAULT_TICKET_PREFIX,
            comment_prefix=comment_prefix if comment_prefix.strip() else DEFAULT_COMMENT_PREFIX,
            required_fields=fields or list(IntakeField),
        )


def load_workflow_policy(path: Path) -> SupportWorkflowPolicy:
    """Load a policy file.

    Raises:
        OSError: The file cannot be read.
        ValueError: The file is not valid JSON or does not match the schema.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return InstructionDocument.model_validate(data).to_policy()


def discover_workflow_policy(root: Path) -> Path | None:
    """Find a ``*support*instruction*.json`` file under ``root``."""
    root = Path(root)
    if not root.is_dir():
        return None
    for candidate in sorted(root.rglob("*.json")):
        if any(part.startswith(".") for part in candidate.relative_to(root).parts):
            continue
        lower = candidate.name.lower()
        if "support" in lower and "instruction" in lower:
            return candidate
    return None


def resolve_workflow_policy(
    config: DataPackConfiguration, explicit_path: Path | None = None
) -> SupportWorkflowPolicy:
    """Return the first loadable policy, falling back to built-in defaults.

    Candidates are tried in order: ``explicit_path``, the configured policy
    path, then a discovered instructions file under the dataset root.
    """
    candidates = [explicit_path, config.workflow_policy_path]
    for path in candidates:
        if path is not None and Path(path).is_file():
            policy = _try_load(Path(path))
            if policy is not None:
                return policy

    discovered = discover_workflow_policy(config.root_directory)
    if discovered is not None:
        policy = _try_load(discovered)
        if policy is not None:
            return policy

    logger.debug("policy.defaults", root=str(config.root_directory))
    return SupportWorkflowPolicy()


def _try_load(path: Path) -> SupportWorkflowPolicy | None:
    try:
        policy = load_workflow_policy(path)
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("policy.load_failed", path=str(path), error=str(e))
        return None
    logger.info("policy.loaded", path=str(path), ticket_prefix=policy.ticket_prefix)
    return policy
