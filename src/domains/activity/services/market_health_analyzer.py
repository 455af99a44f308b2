"""Market health report built from stored pages and events."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from src.core.markets import MARKETS
from src.domains.activity.core.market_health import (
    MarketActivity,
    MarketHealth,
    calculate_market_health,
    summarize_health,
)

if TYPE_CHECKING:
    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository

logger = structlog.get_logger(__name__)


class MarketHealthAnalyzer:
    """Scores every market on content freshness, coverage and update frequency."""

    def __init__(
        self,
        page_repo: ContentPageRepository,
        event_repo: PageEventRepository,
    ) -> None:
        self.page_repo = page_repo
        self.event_repo = event_repo

    def collect_activity(
        self,
        now: datetime | None = None,
        include_empty: bool = False,
    ) -> list[MarketActivity]:
        """Gather activity counts per market.

        With ``include_empty`` every registered market is reported, even
        those with no pages yet.
        """
        reference = now or datetime.now(UTC)
        page_stats = {row["market"]: row for row in self.page_repo.get_market_page_stats(reference)}
        event_counts = self.event_repo.get_market_event_counts(reference)

        markets = set(page_stats)
        if include_empty:
            markets.update(MARKETS)

        activities = []
        for market in sorted(markets):
            stats = page_stats.get(market, {})
            counts = event_counts.get(market, {})
            activities.append(
                MarketActivity(
                    market=market,
                    total_pages=stats.get("total_pages") or 0,
                    recently_modified_pages=stats.get("recently_modified_pages") or 0,
                    events_last_7_days=counts.get("last_7_days", 0),
                    events_previous_7_days=counts.get("previous_7_days", 0),
                    last_crawled_at=stats.get("last_crawled_at"),
                )
            )
        return activities

    def analyze(
        self,
        now: datetime | None = None,
        include_empty: bool = False,
    ) -> tuple[list[MarketHealth], dict[str, int]]:
        """Score each market, best first. Returns (scores, band summary)."""
        scores = [
            calculate_market_health(activity)
            for activity in self.collect_activity(now, include_empty)
        ]
        scores.sort(key=lambda score: score.overall_score, reverse=True)
        summary = summarize_health(scores)
        logger.info("market_health_analyzed", **summary)
        return scores, summary
