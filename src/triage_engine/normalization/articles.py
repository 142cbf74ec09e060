"""Normalization of raw KB content into searchable articles.

Derived fields are always recomputed here from title, body and source path;
nothing downstream edits them.
"""

from pathlib import Path

from triage_engine.core.models import KBArticle
from triage_engine.normalization.text import tokenize

KNOWN_APPS: tuple[str, ...] = (
    "Outlook",
    "Teams",
    "GlobalProtect",
    "Horizon",
    "SharePoint",
    "OneDrive",
    "DUO",
    "Firefox",
    "Edge",
    "Workday",
    "Verkada",
    "Meraki",
    "Concur",
)

# (platform, substrings that imply it), checked in order
PLATFORM_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("macOS", ("mac", "macos")),
    ("iOS", ("iphone", "ios")),
    ("iPadOS", ("ipad", "ipados")),
    ("Windows", ("windows",)),
)


def normalize_article(
    article_id: str,
    title: str,
    body_text: str,
    source_path: str,
    tags: list[str] | None = None,
) -> KBArticle:
    """Build a KBArticle with derived tags, platforms, apps and keywords."""
    title_words = tokenize(title)
    body_words = tokenize(body_text)
    path_words = tokenize(Path(source_path).name)

    derived_tags = {tag.lower() for tag in [*(tags or []), *title_words, *path_words]}
    keywords = {word for word in [*title_words, *body_words] if len(word) > 2}

    return KBArticle(
        id=article_id,
        title=title,
        body_text=body_text,
        source_path=source_path,
        tags=sorted(derived_tags),
        platforms=extract_platforms(f"{body_text} {title} {source_path}"),
        apps=extract_apps(f"{body_text} {title}"),
        keywords=sorted(keywords),
    )


def extract_platforms(text: str) -> list[str]:
    lower = text.lower()
    return [
        platform
        for platform, needles in PLATFORM_KEYWORDS
        if any(needle in lower for needle in needles)
    ]


def extract_apps(text: str) -> list[str]:
    lower = text.lower()
    return [app for app in KNOWN_APPS if app.lower() in lower]

