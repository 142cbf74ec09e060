"""Dataset ingestion: discovery, role detection, readers and the import pipeline."""

from triage_engine.pipelines.ingestion.discovery import discover_dataset_files
from triage_engine.pipelines.ingestion.documents import DocumentTextService, split_frontmatter
from triage_engine.pipelines.ingestion.fingerprint import compute_fingerprint
from triage_engine.pipelines.ingestion.pipeline import DataPackImporter
from triage_engine.pipelines.ingestion.readers import InventoryReader, KnowledgeBaseReader
from triage_engine.pipelines.ingestion.roles import DatasetRole, RoleKind, detect_role

__all__ = [
    "DataPackImporter",
    "DatasetRole",
    "DocumentTextService",
    "InventoryReader",
    "KnowledgeBaseReader",
    "RoleKind",
    "compute_fingerprint",
    "detect_role",
    "discover_dataset_files",
    "split_frontmatter",
]
