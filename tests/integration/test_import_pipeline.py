"""Integration tests for importing a dataset pack into SQLite."""

import json
import os
from pathlib import Path

import pytest

from triage_engine.core.models import (
    DataPackConfiguration,
    DeviceType,
    InventoryLookupQuery,
    InventorySourceType,
    KBSearchQuery,
    LookupField,
)
from triage_engine.pipelines.ingestion import DataPackImporter
from triage_engine.repositories.memory import MemoryLogger
from triage_engine.repositories.sqlite import (
    SQLiteImportLedger,
    SQLiteInventoryRepository,
    SQLiteKBRepository,
)


@pytest.mark.integration
class TestDataPackImporter:
    """Tests for DataPackImporter.import_all."""

    def test_import_and_lookup(self, database, data_pack: DataPackConfiguration) -> None:
        report = DataPackImporter(database).import_all(data_pack)

        assert len(report.imported_files) == 5
        assert report.skipped_files == ["cw-support-instructions.json"]
        assert report.record_counts["kb_corpus.jsonl"] == 1

        kb_results = SQLiteKBRepository(database).search(
            KBSearchQuery(text="outlook login", preferred_device=DeviceType.MAC), limit=5
        )
        assert [r.article.id for r in kb_results] == ["kb1"]

        inventory = SQLiteInventoryRepository(database)
        serial_results = inventory.lookup(
            InventoryLookupQuery(text="C02ABC12345", field=LookupField.SERIAL_NUMBER), limit=10
        )
        assert {r.source_type for r in serial_results} == {
            InventorySourceType.MANAGED_MAC,
            InventorySourceType.APPLE_INTAKE,
        }

        linked = inventory.linked_context("C02ABC12345", None)
        assert linked.confidence > 0.9

    def test_records_keep_wrapper_source(self, database, data_pack: DataPackConfiguration) -> None:
        DataPackImporter(database).import_all(data_pack)

        records = SQLiteInventoryRepository(database).lookup(
            InventoryLookupQuery(text="5551001000", field=LookupField.PHONE_NUMBER), limit=5
        )

        assert len(records) == 1
        assert records[0].source == "5745 Mobile Devices in All Managed Devices.csv"
        assert records[0].display_name == "TC iPhone"
        assert records[0].username == "Jim Daley"

    def test_unchanged_pack_is_skipped(self, database, data_pack: DataPackConfiguration) -> None:
        importer = DataPackImporter(database)
        importer.import_all(data_pack)

        report = importer.import_all(data_pack)

        assert report.imported_files == []
        assert not report.changed
        assert len(report.skipped_files) == 6
        assert SQLiteKBRepository(database).count() == 1
        assert SQLiteImportLedger(database).count() == 6

    def test_changed_file_triggers_full_refresh(
        self, database, data_dir: Path, data_pack: DataPackConfiguration
    ) -> None:
        importer = DataPackImporter(database)
        importer.import_all(data_pack)

        kb_path = data_dir / "kb_corpus.jsonl"
        kb_path.write_text(
            kb_path.read_text()
            + json.dumps({"id": "kb2", "title": "VPN", "text": "Connect with GlobalProtect"})
            + "\n"
        )
        report = importer.import_all(data_pack)

        assert len(report.imported_files) == 5
        assert SQLiteKBRepository(database).count() == 2
        assert SQLiteInventoryRepository(database).count() == 4
        results = SQLiteKBRepository(database).search(KBSearchQuery(text="globalprot"), limit=5)
        assert [r.article.id for r in results] == ["kb2"]

    def test_failing_file_is_skipped(self, database, data_dir: Path, data_pack) -> None:
        (data_dir / "broken_assets.jsonl").write_text('{"Serial Number": "X1"}\nnot json\n')
        support_logger = MemoryLogger()

        report = DataPackImporter(database, logger=support_logger).import_all(data_pack)

        assert "broken_assets.jsonl" in report.skipped_files
        assert len(report.imported_files) == 5
        assert any("broken_assets.jsonl" in message for message in support_logger.errors)
        assert SQLiteInventoryRepository(database).lookup(
            InventoryLookupQuery(text="X1", field=LookupField.SERIAL_NUMBER), limit=5
        ) == []

    def test_corrupt_workbook_is_skipped(self, database, data_dir: Path, data_pack) -> None:
        (data_dir / "aa_assets.xlsx").write_bytes(b"not a zip archive")
        support_logger = MemoryLogger()

        report = DataPackImporter(database, logger=support_logger).import_all(data_pack)

        assert "aa_assets.xlsx" in report.skipped_files
        assert len(report.imported_files) == 5
        assert any("aa_assets.xlsx" in message for message in support_logger.errors)
        assert SQLiteKBRepository(database).count() == 1

    def test_documents_and_spreadsheets(self, database, tmp_path: Path) -> None:
        root = tmp_path / "pack"
        root.mkdir()
        (root / "Teams Audio.md").write_text("---\ntitle: Teams Audio\n---\nOpen Teams\nCheck devices\n")
        (root / "managed_macs.csv").write_text("Computer Name,Serial Number\nTC-M-2,C02XYZ\n")
        (root / "notes.png").write_bytes(b"\x89PNG")

        report = DataPackImporter(database).import_all(DataPackConfiguration.local_default(root))

        assert sorted(report.imported_files) == ["Teams Audio.md", "managed_macs.csv"]
        article = SQLiteKBRepository(database).search(KBSearchQuery(text="teams audio"), limit=1)[0].article
        assert article.apps == ["Teams"]
        record = SQLiteInventoryRepository(database).lookup(InventoryLookupQuery(text="TC-M-2"), limit=1)[0]
        assert record.source_type is InventorySourceType.MANAGED_MAC
        assert record.source == "managed_macs.csv"

    def test_empty_pack(self, database, tmp_path: Path) -> None:
        report = DataPackImporter(database).import_all(DataPackConfiguration.local_default(tmp_path))

        assert report.imported_files == []
        assert report.skipped_files == [f"No supported dataset files found in {tmp_path}"]

    def test_touched_file_is_reimported(self, database, data_dir: Path, data_pack) -> None:
        importer = DataPackImporter(database)
        importer.import_all(data_pack)
        assets = data_dir / "assets.jsonl"
        stat = assets.stat()
        os.utime(assets, (stat.st_atime, stat.st_mtime + 10))

        report = importer.import_all(data_pack)

        assert report.changed
