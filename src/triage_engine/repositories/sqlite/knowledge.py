"""SQLite knowledge base repository: FTS5 search with domain reranking."""

import json
import sqlite3
import time

import structlog

from triage_engine.core.models import KBArticle, KBSearchQuery, KBSearchResult
from triage_engine.normalization import tokenize
from triage_engine.repositories.sqlite.database import SQLiteDatabase

logger = structlog.get_logger(__name__)

MAX_QUERY_TOKENS = 8
# Additive rerank boosts. Uncalibrated; kept stable so rankings stay comparable.
DEVICE_BOOST = 0.35
APP_BOOST = 0.25

_ARTICLE_COLUMNS = (
    "kb.id, kb.title, kb.body_text, kb.source_path, "
    "kb.tags_json, kb.platforms_json, kb.apps_json, kb.keywords_json"
)


def query_tokens(text: str) -> list[str]:
    """Search tokens: lowercase alphanumerics longer than one char, capped at 8."""
    return [token for token in tokenize(text) if len(token) > 1][:MAX_QUERY_TOKENS]


def fts_match_expression(tokens: list[str]) -> str:
    """Prefix-match every token, all required."""
    return " AND ".join(f"{token}*" for token in tokens)


def rerank_score(raw_rank: float, article: KBArticle, query: KBSearchQuery) -> float:
    """Map bm25 rank into (0, 1] and add device and app preference boosts."""
    score = 1.0 / (abs(raw_rank) + 1.0)

    device_token = query.preferred_device.platform_token if query.preferred_device else None
    if device_token and any(device_token in platform.lower() for platform in article.platforms):
        score += DEVICE_BOOST

    if query.preferred_app:
        preferred = query.preferred_app.casefold()
        if any(app.casefold() == preferred for app in article.apps):
            score += APP_BOOST

    return score


class SQLiteKBRepository:
    """KB articles stored in ``kb_articles`` and mirrored into ``kb_articles_fts``."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def search(self, query: KBSearchQuery, limit: int) -> list[KBSearchResult]:
        tokens = query_tokens(query.text)
        if not tokens:
            return []

        rows = self._db.query(
            f"""
            SELECT {_ARTICLE_COLUMNS}, bm25(kb_articles_fts) AS rank
            FROM kb_articles_fts
            JOIN kb_articles kb ON kb_articles_fts.rowid = kb.rowid
            WHERE kb_articles_fts MATCH ?
            ORDER BY rank ASC
            LIMIT ?
            """,
            (fts_match_expression(tokens), limit),
        )

        results = []
        for row in rows:
            article = _row_to_article(row)
            results.append(
                KBSearchResult(article=article, score=rerank_score(row["rank"], article, query))
            )
        # sorted() is stable, so equal scores keep bm25 order.
        results = sorted(results, key=lambda result: result.score, reverse=True)

        logger.debug("kb.search", tokens=len(tokens), results=len(results))
        return results

    def get_article(self, article_id: str) -> KBArticle | None:
        row = self._db.query_one(
            f"SELECT {_ARTICLE_COLUMNS} FROM kb_articles kb WHERE kb.id = ? LIMIT 1",
            (article_id,),
        )
        return _row_to_article(row) if row else None

    def count(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) FROM kb_articles")
        return int(row[0]) if row else 0

    def save_articles(self, articles: list[KBArticle]) -> int:
        """Insert or update articles by id in one transaction."""
        if not articles:
            return 0

        now = time.time()
        with self._db.transaction():
            self._db.executemany(
                """
                INSERT INTO kb_articles (
                    id, title, body_text, source_path, tags_json, platforms_json,
                    apps_json, keywords_json, tags_search, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    body_text = excluded.body_text,
                    source_path = excluded.source_path,
                    tags_json = excluded.tags_json,
                    platforms_json = excluded.platforms_json,
                    apps_json = excluded.apps_json,
                    keywords_json = excluded.keywords_json,
                    tags_search = excluded.tags_search,
                    updated_at = excluded.updated_at
                """,
                [
                    (
                        article.id,
                        article.title,
                        article.body_text,
                        article.source_path,
                        json.dumps(article.tags),
                        json.dumps(article.platforms),
                        json.dumps(article.apps),
                        json.dumps(article.keywords),
                        " ".join(article.tags),
                        now,
                    )
                    for article in articles
                ],
            )
        return len(articles)

    def clear(self) -> None:
        self._db.execute("DELETE FROM kb_articles")


def _decode_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except ValueError:
        return []
    return [str(item) for item in decoded] if isinstance(decoded, list) else []


def _row_to_article(row: sqlite3.Row) -> KBArticle:
    return KBArticle(
        id=row["id"] or "",
        title=row["title"] or "",
        body_text=row["body_text"] or "",
        source_path=row["source_path"] or "",
        tags=_decode_list(row["tags_json"]),
        platforms=_decode_list(row["platforms_json"]),
        apps=_decode_list(row["apps_json"]),
        keywords=_decode_list(row["keywords_json"]),
    )
