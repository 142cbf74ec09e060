"""Knowledge base models."""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from triage_engine.core.models.intake import DeviceType


class KBArticle(BaseModel):
    """A normalized knowledge base article.

    ``tags``, ``platforms``, ``apps`` and ``keywords`` are derived from the
    title, body and source path at ingestion time.
    """

    id: str
    title: str
    body_text: str
    source_path: str
    tags: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    apps: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)


class SourceCitation(BaseModel):
    """Title and path of an article a response was built from."""

    title: str
    path: str


@dataclass
class KBSearchQuery:
    """Free-text KB query with optional ranking preferences."""

    text: str
    preferred_device: DeviceType | None = None
    preferred_app: str | None = None


@dataclass
class KBSearchResult:
    """An article paired with its reranked relevance score."""

    article: KBArticle
    score: float
