"""Tests for knowledge base and inventory readers."""

import json
from pathlib import Path

import openpyxl
import pytest

from triage_engine.core.exceptions import IngestionError, UnsupportedFormatError
from triage_engine.core.models import InventorySourceType
from triage_engine.pipelines.ingestion.readers import (
    InventoryReader,
    KnowledgeBaseReader,
    normalize_inventory_record,
    read_csv_rows,
)


@pytest.mark.unit
class TestInventoryReader:
    """Tests for InventoryReader."""

    def test_jsonl_wrapper_sets_type_and_source(self, tmp_path: Path) -> None:
        path = tmp_path / "managed_macs.jsonl"
        path.write_text(
            json.dumps(
                {
                    "type": "managed_mac",
                    "source": "Managed Macs.csv",
                    "record": {
                        "Computer Name": "TC-M-TEST",
                        "Serial Number": "c02 abc 12345",
                        "Username": "jdaley@example.com",
                        "Operating System Version": "15.1",
                    },
                }
            )
            + "\n\n"
        )

        records = InventoryReader().read(path, InventorySourceType.ASSET)

        assert len(records) == 1
        record = records[0]
        assert record.source == "Managed Macs.csv"
        assert record.source_type is InventorySourceType.MANAGED_MAC
        assert record.serial_number == "C02ABC12345"
        assert record.display_name == "TC-M-TEST"
        assert record.os_version == "15.1"
        assert record.model == "managedMac"
        assert json.loads(record.raw_json)["Computer Name"] == "TC-M-TEST"

    def test_csv_rows_use_filename_type(self, tmp_path: Path) -> None:
        path = tmp_path / "Mobile Devices.csv"
        path.write_text(
            "Display Name,Serial Number,Device Phone Number,Model\n"
            "TC iPhone, DMP123456789 ,5551001000,iPhone 15\n"
        )

        records = InventoryReader().read(path, InventorySourceType.ASSET)

        assert records[0].source == "Mobile Devices.csv"
        assert records[0].source_type is InventorySourceType.MANAGED_MOBILE
        assert records[0].serial_number == "DMP123456789"
        assert records[0].phone_number == "5551001000"
        assert records[0].model == "iPhone 15"

    def test_csv_without_header_fails(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("")

        with pytest.raises(IngestionError, match="Missing CSV header"):
            read_csv_rows(path)

    def test_xlsx_rows(self, tmp_path: Path) -> None:
        path = tmp_path / "assets.xlsx"
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["Name", "AssetTag", "User.Name"])
        sheet.append(["TC-Laptop-01", "AT-1001", "jim.daley"])
        sheet.append([None, None, None])
        workbook.save(path)

        records = InventoryReader().read(path, InventorySourceType.UNKNOWN)

        assert len(records) == 1
        assert records[0].source_type is InventorySourceType.ASSET
        assert records[0].asset_tag == "AT-1001"
        assert records[0].username == "jim.daley"

    def test_corrupt_xlsx_raises_ingestion_error(self, tmp_path: Path) -> None:
        path = tmp_path / "assets.xlsx"
        path.write_bytes(b"not a zip archive")

        with pytest.raises(IngestionError, match="Unreadable workbook assets.xlsx") as exc_info:
            InventoryReader().read(path, InventorySourceType.ASSET)

        assert exc_info.value.details == {"path": str(path)}

    def test_json_container(self, tmp_path: Path) -> None:
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps({"records": [{"Serial Number": "X1", "type": "asset"}, "skip"]}))

        records = InventoryReader().read(path, InventorySourceType.UNKNOWN)

        assert [r.serial_number for r in records] == ["X1"]
        assert records[0].source_type is InventorySourceType.ASSET

    def test_xls_uses_sibling_export(self, tmp_path: Path) -> None:
        (tmp_path / "apple_intake_filtered.jsonl").write_text(
            json.dumps({"record": {"Serial Number": "C02ABC12345", "Scan": "C02ABC12345"}}) + "\n"
        )
        xls = tmp_path / "Apple Intake.xls"
        xls.write_bytes(b"\xd0\xcf\x11\xe0")

        records = InventoryReader().read(xls, InventorySourceType.APPLE_INTAKE)

        assert records[0].source == "Apple Intake.xls"
        assert records[0].source_type is InventorySourceType.APPLE_INTAKE

    def test_xls_without_sibling_is_unsupported(self, tmp_path: Path) -> None:
        xls = tmp_path / "legacy.xls"
        xls.write_bytes(b"\xd0\xcf\x11\xe0")

        with pytest.raises(UnsupportedFormatError, match="XLS parsing requires"):
            InventoryReader().read(xls, InventorySourceType.ASSET)

    def test_invalid_jsonl_line(self, tmp_path: Path) -> None:
        path = tmp_path / "assets.jsonl"
        path.write_text('{"Serial Number": "A"}\nnot json\n')

        with pytest.raises(IngestionError, match="line 2"):
            InventoryReader().read(path, InventorySourceType.ASSET)

    def test_non_string_values_are_stringified(self) -> None:
        record = normalize_inventory_record(
            {"AssetTag": 1001, "Serial Number": None}, "assets.csv", InventorySourceType.ASSET
        )

        assert record.asset_tag == "1001"
        assert record.serial_number is None


@pytest.mark.unit
class TestKnowledgeBaseReader:
    """Tests for KnowledgeBaseReader."""

    def test_jsonl_corpus_skips_inventory_rows(self, tmp_path: Path) -> None:
        path = tmp_path / "kb_corpus.jsonl"
        path.write_text(
            json.dumps(
                {
                    "id": "kb1",
                    "title": "Outlook Login",
                    "text": "Outlook Login\nOpen Outlook",
                    "source_path": "kb/Outlook Login.json",
                    "tags": ["outlook", "login"],
                }
            )
            + "\n"
            + json.dumps({"Serial Number": "C02"})
            + "\n"
        )

        articles = KnowledgeBaseReader().read(path)

        assert [a.id for a in articles] == ["kb1"]
        assert articles[0].source_path == "kb/Outlook Login.json"
        assert articles[0].apps == ["Outlook"]

    def test_json_articles_and_steps(self, tmp_path: Path) -> None:
        path = tmp_path / "vpn.json"
        path.write_text(
            json.dumps({"articles": [{"name": "VPN", "steps": ["Open GlobalProtect", "Connect"]}]})
        )

        articles = KnowledgeBaseReader().read(path)

        assert articles[0].title == "VPN"
        assert articles[0].body_text == "Open GlobalProtect\nConnect"
        assert articles[0].source_path == str(path)

    def test_json_object_without_text_keeps_json_body(self, tmp_path: Path) -> None:
        path = tmp_path / "printer.json"
        path.write_text(json.dumps({"printer": "3rd floor"}))

        articles = KnowledgeBaseReader().read(path)

        assert articles[0].title == "printer"
        assert json.loads(articles[0].body_text) == {"printer": "3rd floor"}

    def test_markdown_frontmatter(self, tmp_path: Path) -> None:
        path = tmp_path / "wifi-help.md"
        path.write_text("---\ntitle: Join Corporate Wi-Fi\ntags: [wifi, network]\n---\nOpen Settings\nChoose TC-Corp\n")

        articles = KnowledgeBaseReader().read(path)

        assert articles[0].title == "Join Corporate Wi-Fi"
        assert articles[0].body_text == "Open Settings\nChoose TC-Corp"
        assert "network" in articles[0].tags

    def test_plain_text_uses_file_stem(self, tmp_path: Path) -> None:
        path = tmp_path / "Reset Password.txt"
        path.write_text("Go to the portal\nChoose reset\n")

        articles = KnowledgeBaseReader().read(path)

        assert articles[0].title == "Reset Password"
        assert {"reset", "password"} <= set(articles[0].tags)

    def test_empty_document_yields_nothing(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.txt"
        path.write_text("   \n")

        assert KnowledgeBaseReader().read(path) == []

    def test_directory_is_read_recursively(self, tmp_path: Path) -> None:
        docs = tmp_path / "docs"
        (docs / "nested").mkdir(parents=True)
        (docs / "a.txt").write_text("First article")
        (docs / "nested" / "b.md").write_text("Second article")
        (docs / ".hidden.txt").write_text("Hidden")

        articles = KnowledgeBaseReader().read(docs)

        assert [a.title for a in articles] == ["a", "b"]
