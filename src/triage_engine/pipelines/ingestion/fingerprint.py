"""Content fingerprints for incremental imports."""

import hashlib
from pathlib import Path

from triage_engine.core.models import FileFingerprint

_CHUNK_SIZE = 1 << 16


def compute_fingerprint(path: Path) -> FileFingerprint:
    """SHA-256 of the file bytes plus its modification time.

    Raises:
        OSError: If the file cannot be read or stat'ed.
    """
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return FileFingerprint(sha256=digest.hexdigest(), modified_time=path.stat().st_mtime)
