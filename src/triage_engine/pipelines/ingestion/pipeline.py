"""Dataset pack import pipeline."""

from pathlib import Path

import structlog

from triage_engine.core.exceptions import TriageEngineError
from triage_engine.core.interfaces import SupportLogger
from triage_engine.core.models import DataPackConfiguration, FileFingerprint, ImportReport
from triage_engine.pipelines.ingestion.discovery import discover_dataset_files
from triage_engine.pipelines.ingestion.fingerprint import compute_fingerprint
from triage_engine.pipelines.ingestion.readers import InventoryReader, KnowledgeBaseReader
from triage_engine.pipelines.ingestion.roles import RoleKind, detect_role
from triage_engine.repositories.memory import NullLogger
from triage_engine.repositories.sqlite import (
    DatabaseMigrator,
    SQLiteDatabase,
    SQLiteImportLedger,
    SQLiteInventoryRepository,
    SQLiteKBRepository,
)

logger = structlog.get_logger(__name__)


class DataPackImporter:
    """Imports a dataset pack into SQLite.

    The pipeline:
    1. Migrate the schema
    2. Discover supported files under the pack root
    3. Fingerprint every file and stop early when nothing changed
    4. Clear articles and inventory, then import each file by role
    5. Rebuild the full-text index and optimize

    A failing file is logged and skipped; the rest of the pack still imports.
    """

    def __init__(
        self,
        database: SQLiteDatabase,
        logger: SupportLogger | None = None,
        kb_reader: KnowledgeBaseReader | None = None,
        inventory_reader: InventoryReader | None = None,
    ) -> None:
        self._db = database
        self._support_logger = logger or NullLogger()
        self._kb_reader = kb_reader or KnowledgeBaseReader()
        self._inventory_reader = inventory_reader or InventoryReader()
        self._ledger = SQLiteImportLedger(database)
        self._kb = SQLiteKBRepository(database)
        self._inventory = SQLiteInventoryRepository(database)

    def import_all(self, config: DataPackConfiguration) -> ImportReport:
        """Import every supported file of a dataset pack.

        Args:
            config: Pack root and well-known file locations.

        Returns:
            Imported and skipped file names with per-file record counts.
        """
        with self._db.lock:
            DatabaseMigrator(self._db).migrate()

            files = discover_dataset_files(config)
            if not files:
                return ImportReport(
                    skipped_files=[f"No supported dataset files found in {config.root_directory}"]
                )

            fingerprints, preflight_skipped = self._fingerprint_all(files)
            changed = any(
                not self._ledger.is_unchanged(str(path), fingerprint)
                for path, fingerprint in fingerprints.items()
            )
            if not changed:
                logger.info("import.unchanged", root=str(config.root_directory), files=len(files))
                return ImportReport(
                    skipped_files=[path.name for path in files] + preflight_skipped
                )

            report = ImportReport(skipped_files=list(preflight_skipped))
            with self._db.transaction():
                self._kb.clear()
                self._inventory.clear()

            for path in files:
                fingerprint = fingerprints.get(path)
                if fingerprint is None:
                    continue
                self._import_file(path, fingerprint, config, report)

            if report.imported_files:
                self._rebuild_search_index()

            logger.info(
                "import.completed",
                root=str(config.root_directory),
                imported=len(report.imported_files),
                skipped=len(report.skipped_files),
            )
            self._support_logger.log(
                f"Imported {len(report.imported_files)} file(s), "
                f"skipped {len(report.skipped_files)}."
            )
            return report

    def _fingerprint_all(
        self, files: list[Path]
    ) -> tuple[dict[Path, FileFingerprint], list[str]]:
        fingerprints: dict[Path, FileFingerprint] = {}
        skipped: list[str] = []
        for path in files:
            try:
                fingerprints[path] = compute_fingerprint(path)
            except OSError as e:
                logger.warning("import.fingerprint_failed", path=str(path), error=str(e))
                self._support_logger.error(f"Failed to fingerprint {path}: {e}")
                skipped.append(path.name)
        return fingerprints, skipped

    def _import_file(
        self,
        path: Path,
        fingerprint: FileFingerprint,
        config: DataPackConfiguration,
        report: ImportReport,
    ) -> None:
        role = detect_role(path, config.workflow_policy_path)
        log = logger.bind(path=str(path), role=role.kind.value)

        if role.kind in (RoleKind.WORKFLOW_POLICY, RoleKind.UNSUPPORTED):
            # Recorded so an unchanged pack does not trigger a refresh.
            self._ledger.mark_imported(str(path), fingerprint)
            report.skipped_files.append(path.name)
            log.debug("import.file_skipped")
            return

        try:
            with self._db.transaction():
                if role.kind is RoleKind.KNOWLEDGE_BASE:
                    count = self._kb.save_articles(self._kb_reader.read(path))
                else:
                    records = self._inventory_reader.read(path, role.source_type)
                    count = self._inventory.replace_source(path.name, records)
                self._ledger.mark_imported(str(path), fingerprint)
        except (TriageEngineError, OSError, ValueError) as e:
            log.error("import.file_failed", error=str(e))
            self._support_logger.error(f"Failed to import {path}: {e}")
            report.skipped_files.append(path.name)
            return

        report.imported_files.append(path.name)
        report.record_counts[path.name] = count
        log.info("import.file_imported", records=count)

    def _rebuild_search_index(self) -> None:
        self._db.execute("INSERT INTO kb_articles_fts(kb_articles_fts) VALUES('rebuild')")
        self._db.execute("ANALYZE")
        self._db.execute("PRAGMA optimize")
        logger.debug("import.index_rebuilt")
