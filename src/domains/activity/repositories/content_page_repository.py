"""Content page repository for database CRUD operations."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from src.core.data_access import format_datetime, page_row_to_dict, serialize_json_field

if TYPE_CHECKING:
    from src.models.processing_error import ProcessingError
    from src.services.database import Database

logger = structlog.get_logger(__name__)

_PAGE_COLUMNS = (
    "url",
    "domain",
    "path",
    "market",
    "language",
    "title",
    "description",
    "text_content",
    "word_count",
    "change_hash",
    "change_pct",
    "publish_date",
    "summary",
    "summary_en",
    "category",
    "content_type",
    "tags",
    "signals",
    "quality_score",
    "last_crawled_at",
    "last_modified_at",
)


def _page_params(data: dict[str, Any]) -> list[Any]:
    values: list[Any] = []
    for column in _PAGE_COLUMNS:
        value = data.get(column)
        if column in ("tags", "signals"):
            value = serialize_json_field(value)
        elif isinstance(value, datetime):
            value = format_datetime(value)
        values.append(value)
    return values


class ContentPageRepository:
    """Repository for content page data access."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def insert_page(self, data: dict[str, Any]) -> int:
        """Insert a new page. Returns page ID."""
        now = format_datetime(datetime.now(UTC))
        columns = ", ".join((*_PAGE_COLUMNS, "created_at", "updated_at"))
        placeholders = ", ".join("?" for _ in range(len(_PAGE_COLUMNS) + 2))
        with self.db.transaction() as cursor:
            cursor.execute(
                f"INSERT INTO content_pages ({columns}) VALUES ({placeholders})",
                (*_page_params(data), now, now),
            )
            return cursor.lastrowid or 0

    def update_page(self, page_id: int, data: dict[str, Any]) -> None:
        """Overwrite every stored field of a page."""
        assignments = ", ".join(f"{column} = ?" for column in _PAGE_COLUMNS)
        with self.db.transaction() as cursor:
            cursor.execute(
                f"UPDATE content_pages SET {assignments}, updated_at = ? WHERE id = ?",
                (*_page_params(data), format_datetime(datetime.now(UTC)), page_id),
            )

    def touch_crawled(self, page_id: int, crawled_at: datetime) -> None:
        """Refresh last_crawled_at only. Used when content is unchanged."""
        with self.db.transaction() as cursor:
            cursor.execute(
                "UPDATE content_pages SET last_crawled_at = ? WHERE id = ?",
                (format_datetime(crawled_at), page_id),
            )

    def get_page_by_url(self, url: str) -> dict[str, Any] | None:
        """Get a page by its URL."""
        row = self.db.fetchone("SELECT * FROM content_pages WHERE url = ?", (url,))
        return page_row_to_dict(row) if row else None

    def get_page_by_id(self, page_id: int) -> dict[str, Any] | None:
        """Get a page by ID."""
        row = self.db.fetchone("SELECT * FROM content_pages WHERE id = ?", (page_id,))
        return page_row_to_dict(row) if row else None

    def get_pages(
        self,
        market: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Get pages, most recently modified first, optionally for one market."""
        sql = "SELECT * FROM content_pages"
        params: list[Any] = []
        if market is not None:
            sql += " WHERE market = ?"
            params.append(market)
        sql += " ORDER BY last_modified_at DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [page_row_to_dict(row) for row in self.db.fetchall(sql, tuple(params))]

    def get_pages_missing_summary_en(self, limit: int = 50) -> list[dict[str, Any]]:
        """Get pages with text but without an English summary."""
        rows = self.db.fetchall(
            """SELECT * FROM content_pages
               WHERE (summary_en IS NULL OR summary_en = '') AND text_content IS NOT NULL
               ORDER BY last_modified_at DESC
               LIMIT ?""",
            (limit,),
        )
        return [page_row_to_dict(row) for row in rows]

    def update_enrichment(self, page_id: int, enrichment: dict[str, Any]) -> None:
        """Store enrichment fields without touching content or change tracking."""
        with self.db.transaction() as cursor:
            cursor.execute(
                """UPDATE content_pages
                   SET summary = ?, summary_en = ?, category = ?, content_type = ?,
                       quality_score = ?, updated_at = ?
                   WHERE id = ?""",
                (
                    enrichment.get("summary"),
                    enrichment.get("summary_en"),
                    enrichment.get("category"),
                    enrichment.get("content_type"),
                    enrichment.get("quality_score", 0),
                    format_datetime(datetime.now(UTC)),
                    page_id,
                ),
            )

    def count_pages(self) -> int:
        """Count all pages."""
        row = self.db.fetchone("SELECT COUNT(*) AS total FROM content_pages")
        return row["total"] if row else 0

    def count_by_column(self, column: str) -> dict[str, int]:
        """Count pages grouped by market, category, content_type or language."""
        if column not in ("market", "category", "content_type", "language"):
            msg = f"cannot group pages by {column}"
            raise ValueError(msg)
        rows = self.db.fetchall(
            f"""SELECT COALESCE({column}, 'unknown') AS key, COUNT(*) AS total
                FROM content_pages
                GROUP BY key
                ORDER BY total DESC"""
        )
        return {row["key"]: row["total"] for row in rows}

    def average_quality_score(self) -> float:
        """Mean quality score over all pages, 0 when empty."""
        row = self.db.fetchone("SELECT AVG(quality_score) AS average FROM content_pages")
        if row is None or row["average"] is None:
            return 0.0
        return round(float(row["average"]), 1)

    def get_market_page_stats(
        self,
        now: datetime | None = None,
        fresh_days: int = 30,
    ) -> list[dict[str, Any]]:
        """Per-market page totals, recently modified counts and latest crawl time."""
        reference = now or datetime.now(UTC)
        fresh_since = format_datetime(reference - timedelta(days=fresh_days))
        rows = self.db.fetchall(
            """SELECT market,
                      COUNT(*) AS total_pages,
                      SUM(CASE WHEN last_modified_at >= ? THEN 1 ELSE 0 END)
                          AS recently_modified_pages,
                      MAX(last_crawled_at) AS last_crawled_at
               FROM content_pages
               WHERE market IS NOT NULL
               GROUP BY market
               ORDER BY market""",
            (fresh_since,),
        )
        return [dict(row) for row in rows]

    def store_processing_error(self, error: ProcessingError) -> int:
        """Store a processing error for debugging. Returns error ID."""
        with self.db.transaction() as cursor:
            cursor.execute(
                """INSERT INTO processing_errors
                   (entity_type, entity_id, url, error_type, error_message,
                    retry_count, occurred_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    error.entity_type,
                    error.entity_id,
                    error.url,
                    error.error_type,
                    error.error_message,
                    error.retry_count,
                    format_datetime(error.occurred_at),
                ),
            )
            return cursor.lastrowid or 0

    def get_recent_errors(self, limit: int = 20) -> list[dict[str, Any]]:
        """Get the most recent processing errors."""
        rows = self.db.fetchall(
            "SELECT * FROM processing_errors ORDER BY occurred_at DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [dict(row) for row in rows]
