"""Tokenization helpers shared by ingestion and search."""

import re
from pathlib import Path

_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> list[str]:
    """Split text into lowercase alphanumeric tokens, in order of appearance."""
    return _TOKEN_RE.findall(text.lower())


def filename_tokens(path: str | Path) -> list[str]:
    """Tokens of a file name without its extension."""
    return tokenize(Path(path).stem)
