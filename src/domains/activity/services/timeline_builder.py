"""Timeline assembly: filtered page events plus synthetic insight events."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

from src.core.data_access import parse_datetime
from src.domains.activity.core.change_estimation import derive_impact
from src.domains.activity.core.content_quality import (
    DEFAULT_QUALITY_RULES,
    validate_event_for_timeline,
)
from src.domains.activity.core.event_ranking import (
    PatternDetection,
    detect_cross_market_patterns,
    sort_events_by_relevance,
)
from src.models.page_event import EventType
from src.models.timeline_event import ImpactLevel, TimelineEvent

if TYPE_CHECKING:
    from src.domains.activity.core.content_quality import QualityRules
    from src.domains.activity.repositories.page_event_repository import PageEventRepository

logger = structlog.get_logger(__name__)

TIME_RANGES: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}
DEFAULT_TIME_RANGE = "7d"

# Synthetic insight thresholds
MIN_EVENTS_FOR_INSIGHTS = 5
BUSY_MARKET_EVENTS = 3
MIN_BUSY_MARKETS = 2
SPIKE_EVENTS_PER_HOUR = 10
MIN_EVENTS_TO_LOG_PATTERN = 10

ALL_MARKETS = "all"


@dataclass
class Timeline:
    """Ordered timeline events with the detected cross-market pattern."""

    events: list[TimelineEvent]
    time_range: str
    pattern: PatternDetection
    filters: dict[str, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.events)


def _to_timeline_event(row: dict[str, Any]) -> TimelineEvent:
    """Shape a joined event row for display.

    The page publish date wins over the crawl time, and the English summary
    wins over the description.
    """
    timestamp = parse_datetime(row.get("page_publish_date")) or parse_datetime(row["event_at"])
    change_pct = row.get("change_pct")
    return TimelineEvent(
        id=str(row["id"]),
        type=EventType(row["event_type"]),
        timestamp=timestamp or datetime.now(UTC),
        market=row.get("market") or "unknown",
        title=row.get("title") or row.get("page_title") or "Content Update",
        url=row.get("url"),
        description=(
            row.get("page_summary_en")
            or row.get("page_description")
            or row.get("summary")
            or "Content update detected"
        ),
        change_percent=change_pct,
        impact=ImpactLevel(str(derive_impact(change_pct))),
        language=row.get("language") or row.get("page_language"),
        tags=list(row.get("page_tags") or []),
    )


def build_insight_events(events: list[TimelineEvent], now: datetime) -> list[TimelineEvent]:
    """Synthesize pattern and alert events from a batch of timeline events.

    Needs more than 5 events. A pattern event is added when more than 2
    markets each have more than 3 events; an alert event when more than 10
    events fall within the last hour.
    """
    if len(events) <= MIN_EVENTS_FOR_INSIGHTS:
        return []

    insights: list[TimelineEvent] = []
    per_market = Counter(event.market for event in events)
    busy_markets = {
        market: count for market, count in per_market.items() if count > BUSY_MARKET_EVENTS
    }
    if len(busy_markets) > MIN_BUSY_MARKETS:
        insights.append(
            TimelineEvent(
                id="pattern-1",
                type=EventType.PATTERN,
                timestamp=now,
                market=ALL_MARKETS,
                title="Coordinated Content Update Detected",
                description=(
                    f"{len(busy_markets)} markets showing increased activity."
                    " This could indicate a coordinated campaign rollout."
                ),
                impact=ImpactLevel.HIGH,
                related_count=sum(busy_markets.values()),
                tags=["insight", "pattern", "cross-market"],
            )
        )

    hour_ago = now - timedelta(hours=1)
    recent = [event for event in events if event.timestamp > hour_ago]
    if len(recent) > SPIKE_EVENTS_PER_HOUR:
        insights.append(
            TimelineEvent(
                id="pattern-2",
                type=EventType.ALERT,
                timestamp=now,
                market=ALL_MARKETS,
                title="Unusual Activity Spike",
                description=(
                    f"{len(recent)} events in the last hour."
                    f" This is {round(len(recent) / 2)}x higher than average."
                ),
                impact=ImpactLevel.MEDIUM,
                related_count=len(recent),
                tags=["alert", "spike", "monitoring"],
            )
        )
    return insights


class TimelineBuilder:
    """Builds the relevance-ordered activity timeline from the event log."""

    def __init__(
        self,
        event_repo: PageEventRepository,
        quality_rules: QualityRules = DEFAULT_QUALITY_RULES,
    ) -> None:
        self.event_repo = event_repo
        self.quality_rules = quality_rules

    def build(
        self,
        time_range: str = DEFAULT_TIME_RANGE,
        markets: list[str] | None = None,
        event_types: list[str] | None = None,
        search: str | None = None,
        min_change: int = 0,
        limit: int = 100,
        now: datetime | None = None,
    ) -> Timeline:
        """Build the timeline for a time range and optional filters.

        Raises ValueError for an unknown time range.
        """
        if time_range not in TIME_RANGES:
            msg = f"time_range must be one of {', '.join(TIME_RANGES)}"
            raise ValueError(msg)
        current_time = now or datetime.now(UTC)

        rows = self.event_repo.get_timeline_events(
            since=current_time - TIME_RANGES[time_range],
            markets=markets,
            event_types=event_types,
            search=search,
            min_change=min_change,
            quality_rules=self.quality_rules,
            limit=limit,
        )
        events = [
            _to_timeline_event(row)
            for row in rows
            if validate_event_for_timeline(row, self.quality_rules)
        ]
        events = build_insight_events(events, current_time) + events

        ordered = sort_events_by_relevance(events)
        pattern = detect_cross_market_patterns(ordered, now=current_time)
        if pattern.has_pattern and len(ordered) > MIN_EVENTS_TO_LOG_PATTERN:
            logger.info(
                "cross_market_pattern_detected",
                pattern_type=pattern.pattern_type,
                markets=pattern.affected_markets,
                confidence=pattern.confidence,
            )

        logger.debug("timeline_built", time_range=time_range, total=len(ordered))
        return Timeline(
            events=ordered,
            time_range=time_range,
            pattern=pattern,
            filters={
                "markets": markets or [],
                "event_types": event_types or [],
                "search": search or "",
                "min_change": min_change,
            },
        )
