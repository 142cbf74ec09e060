"""Dataset file discovery under a data pack root."""

from pathlib import Path

from triage_engine.core.models import SUPPORTED_EXTENSIONS, DataPackConfiguration


def _is_hidden(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part.startswith(".") for part in parts)


def discover_dataset_files(config: DataPackConfiguration) -> list[Path]:
    """Return preferred files that exist plus every supported file under the root.

    Hidden files and directories are skipped, paths are de-duplicated after
    resolution and the result is sorted case-insensitively.
    """
    found: dict[Path, None] = {}

    for path in config.preferred_paths:
        if path.is_file():
            found.setdefault(path.resolve(), None)

    root = config.root_directory
    if root.is_dir():
        for path in root.rglob("*"):
            if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            if _is_hidden(path, root) or not path.is_file():
                continue
            found.setdefault(path.resolve(), None)

    return sorted(found, key=lambda path: str(path).lower())
