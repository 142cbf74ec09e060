"""Repository factory for creating repository instances."""

from typing import TYPE_CHECKING

import structlog

from triage_engine.config.policy import resolve_workflow_policy
from triage_engine.core.models import DataPackConfiguration, SupportWorkflowPolicy
from triage_engine.repositories.sqlite import (
    DatabaseMigrator,
    SQLiteDatabase,
    SQLiteDiagnosticsRepository,
    SQLiteInventoryRepository,
    SQLiteKBRepository,
    SQLiteLogger,
    SQLiteResponseTemplateRepository,
    SQLiteTicketHistoryRepository,
)

if TYPE_CHECKING:
    from triage_engine.config.settings import Settings
    from triage_engine.pipelines.ingestion import DataPackImporter

logger = structlog.get_logger(__name__)


class RepositoryFactory:
    """Factory for creating repository instances.

    All repositories share one migrated SQLite database opened on first use.
    """

    def __init__(self, settings: "Settings") -> None:
        self._settings = settings
        self._database: SQLiteDatabase | None = None
        self._kb: SQLiteKBRepository | None = None
        self._inventory: SQLiteInventoryRepository | None = None
        self._tickets: SQLiteTicketHistoryRepository | None = None
        self._templates: SQLiteResponseTemplateRepository | None = None
        self._diagnostics: SQLiteDiagnosticsRepository | None = None

    @property
    def settings(self) -> "Settings":
        return self._settings

    def get_database(self) -> SQLiteDatabase:
        """Get or open the database, applying pending migrations."""
        if self._database is None:
            database = SQLiteDatabase(self._settings.sqlite_path)
            version = DatabaseMigrator(database).migrate()
            self._database = database
            logger.info("Database opened", path=str(self._settings.sqlite_path), version=version)
        return self._database

    def get_kb_repository(self) -> SQLiteKBRepository:
        if self._kb is None:
            self._kb = SQLiteKBRepository(self.get_database())
        return self._kb

    def get_inventory_repository(self) -> SQLiteInventoryRepository:
        if self._inventory is None:
            self._inventory = SQLiteInventoryRepository(self.get_database())
        return self._inventory

    def get_ticket_history_repository(self) -> SQLiteTicketHistoryRepository:
        if self._tickets is None:
            self._tickets = SQLiteTicketHistoryRepository(self.get_database())
        return self._tickets

    def get_template_repository(self) -> SQLiteResponseTemplateRepository:
        if self._templates is None:
            self._templates = SQLiteResponseTemplateRepository(self.get_database())
        return self._templates

    def get_diagnostics_repository(self) -> SQLiteDiagnosticsRepository:
        if self._diagnostics is None:
            self._diagnostics = SQLiteDiagnosticsRepository(
                self.get_database(),
                retention_days=self._settings.diagnostics_retention_days,
            )
        return self._diagnostics

    def get_logger(self, category: str = "general") -> SQLiteLogger:
        """A diagnostics logger writing under ``category``."""
        return SQLiteLogger(self.get_diagnostics_repository(), category=category)

    def get_importer(self) -> "DataPackImporter":
        from triage_engine.pipelines.ingestion import DataPackImporter

        return DataPackImporter(self.get_database(), logger=self.get_logger("ingestion"))

    def get_data_pack(self) -> DataPackConfiguration:
        """Dataset pack rooted at ``data_dir``, honoring an explicit policy path."""
        config = DataPackConfiguration.local_default(self._settings.data_dir)
        if self._settings.workflow_policy_path is not None:
            config = config.model_copy(
                update={"workflow_policy_path": self._settings.workflow_policy_path}
            )
        return config

    def get_workflow_policy(self) -> SupportWorkflowPolicy:
        return resolve_workflow_policy(
            self.get_data_pack(), explicit_path=self._settings.workflow_policy_path
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._database is not None:
            self._database.close()
        self._database = None
        self._kb = None
        self._inventory = None
        self._tickets = None
        self._templates = None
        self._diagnostics = None
