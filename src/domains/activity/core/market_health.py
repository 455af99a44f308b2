"""Market health scoring from page and event activity counts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class HealthTrend(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# Pages per market considered full coverage
EXPECTED_PAGES = 50
EVENT_FREQUENCY_POINTS = 10

FRESHNESS_WEIGHT = 0.4
COVERAGE_WEIGHT = 0.3
FREQUENCY_WEIGHT = 0.3

TREND_UP_RATIO = 1.2
TREND_DOWN_RATIO = 0.8

HEALTHY_SCORE = 80
WARNING_SCORE = 40


@dataclass
class MarketActivity:
    """Raw activity counts for one market."""

    market: str
    total_pages: int
    recently_modified_pages: int  # last_modified_at within 30 days
    events_last_7_days: int
    events_previous_7_days: int  # 14 to 7 days ago
    last_crawled_at: str | None = None


@dataclass
class MarketHealth:
    """Health score breakdown for one market."""

    market: str
    overall_score: int
    content_freshness: int
    content_coverage: int
    update_frequency: int
    total_pages: int
    recent_updates: int
    trend: HealthTrend
    last_crawled_at: str | None = None
    alerts: list[str] = field(default_factory=list)


def _determine_trend(recent: int, previous: int) -> HealthTrend:
    if recent > previous * TREND_UP_RATIO:
        return HealthTrend.UP
    if recent < previous * TREND_DOWN_RATIO:
        return HealthTrend.DOWN
    return HealthTrend.STABLE


def calculate_market_health(activity: MarketActivity) -> MarketHealth:
    """Score a market on freshness (40%), coverage (30%) and update frequency (30%)."""
    if activity.total_pages <= 0:
        return MarketHealth(
            market=activity.market,
            overall_score=0,
            content_freshness=0,
            content_coverage=0,
            update_frequency=0,
            total_pages=0,
            recent_updates=0,
            trend=HealthTrend.STABLE,
            last_crawled_at=activity.last_crawled_at,
            alerts=["No pages crawled yet"],
        )

    freshness = round(activity.recently_modified_pages / activity.total_pages * 100)
    coverage = min(100, round(activity.total_pages / EXPECTED_PAGES * 100))
    frequency = min(100, activity.events_last_7_days * EVENT_FREQUENCY_POINTS)

    overall = round(
        freshness * FRESHNESS_WEIGHT + coverage * COVERAGE_WEIGHT + frequency * FREQUENCY_WEIGHT
    )

    alerts: list[str] = []
    if freshness < 20:
        alerts.append("Stale content - needs refresh")
    if coverage < 50:
        alerts.append("Low page coverage")
    if frequency < 20:
        alerts.append("Infrequent updates")
    if activity.total_pages < 10:
        alerts.append("Very few pages crawled")

    return MarketHealth(
        market=activity.market,
        overall_score=overall,
        content_freshness=freshness,
        content_coverage=coverage,
        update_frequency=frequency,
        total_pages=activity.total_pages,
        recent_updates=activity.events_last_7_days,
        trend=_determine_trend(activity.events_last_7_days, activity.events_previous_7_days),
        last_crawled_at=activity.last_crawled_at,
        alerts=alerts,
    )


def summarize_health(scores: list[MarketHealth]) -> dict[str, int]:
    """Count markets per health band."""
    return {
        "total": len(scores),
        "healthy": sum(1 for s in scores if s.overall_score >= HEALTHY_SCORE),
        "warning": sum(1 for s in scores if WARNING_SCORE <= s.overall_score < HEALTHY_SCORE),
        "critical": sum(1 for s in scores if s.overall_score < WARNING_SCORE),
    }
