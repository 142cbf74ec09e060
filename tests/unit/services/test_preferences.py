"""Tests for the preferences store."""

from pathlib import Path

import pytest

from triage_engine.services.preferences import PreferencesStore


@pytest.mark.unit
class TestPreferencesStore:
    """Tests for PreferencesStore."""

    def test_set_and_get_persist(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "preferences.json"
        PreferencesStore(path).set("theme", "dark")

        assert PreferencesStore(path).get("theme") == "dark"
        assert PreferencesStore(path).get("missing", 3) == 3

    def test_rotation_wraps(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")

        assert [store.next_rotation("index", 3) for _ in range(4)] == [0, 1, 2, 0]

    def test_malformed_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "preferences.json"
        path.write_text("[1, 2")
        store = PreferencesStore(path)

        assert store.get("index") is None
        assert store.next_rotation("index", 7) == 0
        assert store.get("index") == 1

    def test_non_numeric_rotation_resets(self, tmp_path: Path) -> None:
        store = PreferencesStore(tmp_path / "preferences.json")
        store.set("index", "abc")

        assert store.next_rotation("index", 7) == 0
