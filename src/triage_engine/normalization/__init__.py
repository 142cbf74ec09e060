"""Text normalization for knowledge base content."""

from triage_engine.normalization.articles import (
    KNOWN_APPS,
    extract_apps,
    extract_platforms,
    normalize_article,
)
from triage_engine.normalization.text import filename_tokens, tokenize

__all__ = [
    "KNOWN_APPS",
    "extract_apps",
    "extract_platforms",
    "filename_tokens",
    "normalize_article",
    "tokenize",
]
