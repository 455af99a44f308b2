"""Page event repository for the append-only activity log."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from src.core.data_access import (
    build_event_filters,
    deserialize_json_field,
    format_datetime,
)

if TYPE_CHECKING:
    from src.domains.activity.core.content_quality import QualityRules
    from src.models.page_event import PageEvent
    from src.services.database import Database

logger = structlog.get_logger(__name__)

DEFAULT_TIMELINE_LIMIT = 100


class PageEventRepository:
    """Repository for page events.

    Events are only ever inserted; there is no update or delete.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def append_event(self, event: PageEvent) -> int:
        """Append an event to the log. Returns event ID."""
        with self.db.transaction() as cursor:
            cursor.execute(
                """INSERT INTO page_events
                   (page_id, url, event_type, event_at, change_pct, market,
                    language, title, summary)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event.page_id,
                    event.url,
                    str(event.event_type),
                    format_datetime(event.event_at),
                    event.change_pct,
                    event.market,
                    event.language,
                    event.title,
                    event.summary,
                ),
            )
            return cursor.lastrowid or 0

    def get_events_for_page(self, page_id: int) -> list[dict[str, Any]]:
        """Get every event for a page, oldest first."""
        rows = self.db.fetchall(
            "SELECT * FROM page_events WHERE page_id = ? ORDER BY event_at, id",
            (page_id,),
        )
        return [dict(row) for row in rows]

    def get_timeline_events(
        self,
        since: datetime | None = None,
        markets: list[str] | None = None,
        event_types: list[str] | None = None,
        search: str | None = None,
        min_change: int = 0,
        quality_rules: QualityRules | None = None,
        limit: int = DEFAULT_TIMELINE_LIMIT,
    ) -> list[dict[str, Any]]:
        """Get recent events joined with their page, newest first.

        Page columns are prefixed with ``page_``; ``page_tags`` is decoded.
        """
        where, params = build_event_filters(
            since=format_datetime(since),
            markets=markets,
            event_types=event_types,
            search=search,
            min_change=min_change,
            quality_rules=quality_rules,
        )
        rows = self.db.fetchall(
            f"""SELECT e.*,
                       p.title AS page_title,
                       p.description AS page_description,
                       p.tags AS page_tags,
                       p.word_count AS page_word_count,
                       p.summary_en AS page_summary_en,
                       p.publish_date AS page_publish_date,
                       p.language AS page_language
                FROM page_events e
                LEFT JOIN content_pages p ON p.id = e.page_id
                {where}
                ORDER BY e.event_at DESC, e.id DESC
                LIMIT ?""",
            (*params, limit),
        )
        events = []
        for row in rows:
            event = dict(row)
            event["page_tags"] = deserialize_json_field(event.get("page_tags"), [])
            events.append(event)
        return events

    def count_events(self, since: datetime | None = None) -> int:
        """Count events, optionally only those at or after ``since``."""
        if since is None:
            row = self.db.fetchone("SELECT COUNT(*) AS total FROM page_events")
        else:
            row = self.db.fetchone(
                "SELECT COUNT(*) AS total FROM page_events WHERE event_at >= ?",
                (format_datetime(since),),
            )
        return row["total"] if row else 0

    def count_by_type(self, since: datetime | None = None) -> dict[str, int]:
        """Count events grouped by event type."""
        where, params = build_event_filters(since=format_datetime(since))
        rows = self.db.fetchall(
            f"""SELECT e.event_type AS event_type, COUNT(*) AS total
                FROM page_events e
                {where}
                GROUP BY e.event_type""",
            tuple(params),
        )
        return {row["event_type"]: row["total"] for row in rows}

    def get_market_event_counts(self, now: datetime | None = None) -> dict[str, dict[str, int]]:
        """Per-market event counts for the last 7 days and the 7 days before."""
        reference = now or datetime.now(UTC)
        week_ago = format_datetime(reference - timedelta(days=7))
        two_weeks_ago = format_datetime(reference - timedelta(days=14))
        rows = self.db.fetchall(
            """SELECT market,
                      SUM(CASE WHEN event_at >= ? THEN 1 ELSE 0 END) AS last_7_days,
                      SUM(CASE WHEN event_at >= ? AND event_at < ? THEN 1 ELSE 0 END)
                          AS previous_7_days
               FROM page_events
               WHERE market IS NOT NULL AND event_at >= ?
               GROUP BY market""",
            (week_ago, two_weeks_ago, week_ago, two_weeks_ago),
        )
        return {
            row["market"]: {
                "last_7_days": row["last_7_days"] or 0,
                "previous_7_days": row["previous_7_days"] or 0,
            }
            for row in rows
        }
