"""Shared fixtures."""

import json
from pathlib import Path

import pytest

from triage_engine.config import Settings, get_settings
from triage_engine.core.models import DataPackConfiguration
from triage_engine.repositories.sqlite import DatabaseMigrator, SQLiteDatabase

KB_LINE = {
    "id": "kb1",
    "title": "Outlook Login",
    "text": "Outlook Login\nOpen Outlook\nRemove and re-add the account",
    "source_path": "kb/Outlook Login.json",
    "tags": ["outlook", "login"],
}
MANAGED_MAC_LINE = {
    "type": "managed_mac",
    "source": "410 Computers in _Managed Macs.csv",
    "record": {
        "Computer Name": "TC-M-TEST",
        "Serial Number": "C02ABC12345",
        "Last Logged-in User": "jdaley",
        "Operating System Version": "15.1",
        "Username": "jdaley@ticketcrusher.com",
    },
}
MANAGED_MOBILE_LINE = {
    "type": "managed_mobile_device",
    "source": "5745 Mobile Devices in All Managed Devices.csv",
    "record": {
        "Display Name": "TC iPhone",
        "Model": "iPhone 15",
        "OS Version": "18.1",
        "Serial Number": "DMP123456789",
        "Full Name": "Jim Daley",
        "Device Phone Number": "5551001000",
    },
}
ASSET_LINE = {
    "type": "asset_record",
    "source": "assets.csv",
    "record": {
        "Name": "TC-Laptop-01",
        "User.Name": "jim.daley",
        "Product.Product Name": "MacBook Pro",
        "AssetTag": "AT-1001",
        "Asset Category.Name": "IT",
    },
}
APPLE_INTAKE_LINE = {
    "type": "apple_intake_record",
    "source": "Apple Intake.xlsx (filtered)",
    "record": {
        "Scan": "C02ABC12345",
        "Serial Number": "C02ABC12345",
        "Device/Item": "MacBook Pro",
        "SD+": "Added",
    },
}
POLICY_DOCUMENT = {
    "scope": {
        "supported_platforms": ["macOS", "iOS", "iPadOS"],
        "device_requirement": "Apple only",
    },
    "ticket_detection": {"trigger_format": "##<ticket_number>"},
    "user_annotations": {"comment_prefix": "//"},
    "intake_and_validation": {
        "required_details": [
            "device_type",
            "serial_number",
            "issue_description",
            "app_in_use_at_time_of_issue",
            "wifi_ssid_connected_to",
        ]
    },
}


def write_jsonl(path: Path, *objects: dict) -> Path:
    path.write_text("".join(json.dumps(obj) + "\n" for obj in objects), encoding="utf-8")
    return path


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A dataset pack with one file per well-known role."""
    root = tmp_path / "datasets"
    root.mkdir()
    write_jsonl(root / "kb_corpus.jsonl", KB_LINE)
    write_jsonl(root / "managed_macs.jsonl", MANAGED_MAC_LINE)
    write_jsonl(root / "managed_mobile_devices.jsonl", MANAGED_MOBILE_LINE)
    write_jsonl(root / "assets.jsonl", ASSET_LINE)
    write_jsonl(root / "apple_intake_filtered.jsonl", APPLE_INTAKE_LINE)
    (root / "cw-support-instructions.json").write_text(
        json.dumps(POLICY_DOCUMENT, indent=2), encoding="utf-8"
    )
    return root


@pytest.fixture
def data_pack(data_dir: Path) -> DataPackConfiguration:
    return DataPackConfiguration.local_default(data_dir)


@pytest.fixture
def database(tmp_path: Path):
    db = SQLiteDatabase(tmp_path / "triage.sqlite")
    DatabaseMigrator(db).migrate()
    yield db
    db.close()


@pytest.fixture
def settings(tmp_path: Path, data_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        data_dir=data_dir,
        sqlite_path=tmp_path / "state" / "triage.sqlite",
        preferences_path=tmp_path / "state" / "preferences.json",
    )


@pytest.fixture
def settings_env(monkeypatch, settings: Settings) -> Settings:
    """Expose ``settings`` through the environment for the CLI and API."""
    monkeypatch.setenv("TRIAGE_DATA_DIR", str(settings.data_dir))
    monkeypatch.setenv("TRIAGE_SQLITE_PATH", str(settings.sqlite_path))
    monkeypatch.setenv("TRIAGE_PREFERENCES_PATH", str(settings.preferences_path))
    get_settings.cache_clear()
    yield settings
    get_settings.cache_clear()
