"""Dataset pack configuration and import results."""

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel

KB_CORPUS_FILENAME = "kb_corpus.jsonl"
MANAGED_MACS_FILENAME = "managed_macs.jsonl"
MANAGED_MOBILE_FILENAME = "managed_mobile_devices.jsonl"
ASSETS_FILENAME = "assets.jsonl"
APPLE_INTAKE_FILENAME = "apple_intake_filtered.jsonl"
WORKFLOW_POLICY_FILENAME = "cw-support-instructions.json"

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jsonl", ".json", ".csv", ".txt", ".md", ".markdown", ".pdf",
        ".docx", ".doc", ".rtf", ".xlsx", ".xls", ".log",
    }
)


class DataPackConfiguration(BaseModel):
    """Dataset root plus the well-known files expected inside it."""

    root_directory: Path
    knowledge_base_path: Path
    managed_macs_path: Path
    managed_mobile_path: Path
    assets_path: Path
    apple_intake_path: Path
    workflow_policy_path: Path

    @classmethod
    def local_default(cls, root: Path | str) -> "DataPackConfiguration":
        """Build a configuration using the standard file names under ``root``."""
        root = Path(root)
        return cls(
            root_directory=root,
            knowledge_base_path=root / KB_CORPUS_FILENAME,
            managed_macs_path=root / MANAGED_MACS_FILENAME,
            managed_mobile_path=root / MANAGED_MOBILE_FILENAME,
            assets_path=root / ASSETS_FILENAME,
            apple_intake_path=root / APPLE_INTAKE_FILENAME,
            workflow_policy_path=root / WORKFLOW_POLICY_FILENAME,
        )

    @property
    def preferred_paths(self) -> list[Path]:
        return [
            self.knowledge_base_path,
            self.managed_macs_path,
            self.managed_mobile_path,
            self.assets_path,
            self.apple_intake_path,
            self.workflow_policy_path,
        ]


@dataclass(frozen=True)
class FileFingerprint:
    """Content hash and modification time of a dataset file."""

    sha256: str
    modified_time: float


@dataclass
class ImportReport:
    """Outcome of one import run, keyed by file name."""

    imported_files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
    record_counts: dict[str, int] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.imported_files)
