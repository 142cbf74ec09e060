"""Tests for dataset discovery and fingerprinting."""

from pathlib import Path

import pytest

from triage_engine.core.models import DataPackConfiguration
from triage_engine.pipelines.ingestion.discovery import discover_dataset_files
from triage_engine.pipelines.ingestion.fingerprint import compute_fingerprint


@pytest.mark.unit
class TestDiscoverDatasetFiles:
    """Tests for discover_dataset_files."""

    def test_finds_supported_files_sorted_case_insensitively(self, tmp_path: Path) -> None:
        (tmp_path / "b.csv").write_text("Serial Number\nX\n")
        (tmp_path / "A.md").write_text("Article")
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "c.txt").write_text("Nested")
        (tmp_path / "image.png").write_bytes(b"\x89PNG")

        files = discover_dataset_files(DataPackConfiguration.local_default(tmp_path))

        assert [p.name for p in files] == ["A.md", "b.csv", "c.txt"]

    def test_skips_hidden_files_and_directories(self, tmp_path: Path) -> None:
        (tmp_path / ".hidden.json").write_text("{}")
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "kb.jsonl").write_text("{}\n")
        (tmp_path / "kb_corpus.jsonl").write_text("{}\n")

        files = discover_dataset_files(DataPackConfiguration.local_default(tmp_path))

        assert [p.name for p in files] == ["kb_corpus.jsonl"]

    def test_preferred_files_are_not_duplicated(self, data_pack: DataPackConfiguration) -> None:
        files = discover_dataset_files(data_pack)

        assert len(files) == 6
        assert len(set(files)) == 6

    def test_missing_root(self, tmp_path: Path) -> None:
        config = DataPackConfiguration.local_default(tmp_path / "missing")

        assert discover_dataset_files(config) == []


@pytest.mark.unit
class TestComputeFingerprint:
    """Tests for compute_fingerprint."""

    def test_hash_changes_with_content(self, tmp_path: Path) -> None:
        path = tmp_path / "kb.txt"
        path.write_text("one")
        first = compute_fingerprint(path)

        path.write_text("two")
        second = compute_fingerprint(path)

        assert first.sha256 != second.sha256
        assert len(first.sha256) == 64

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            compute_fingerprint(tmp_path / "missing.txt")
