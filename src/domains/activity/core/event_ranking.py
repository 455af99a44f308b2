"""Timeline relevance ordering and cross-market pattern detection."""

from __future__ import annotations

import functools
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.models.timeline_event import TimelineEvent

SYSTEM_EVENT_TYPES: frozenset[str] = frozenset({"pattern", "alert"})

IMPACT_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}

RECENT_WINDOW = timedelta(hours=1)
MIN_SIMULTANEOUS_MARKETS = 3
MIN_SIMILAR_EVENTS = 3
TITLE_SIMILARITY_THRESHOLD = 0.7
SIMILAR_CONTENT_CONFIDENCE = 0.75
MAX_SIMULTANEOUS_CONFIDENCE = 0.9
CONFIDENCE_PER_MARKET = 0.2


@dataclass
class PatternDetection:
    """Result of cross-market pattern detection."""

    has_pattern: bool
    pattern_type: str | None = None  # "simultaneous_update" or "similar_content"
    affected_markets: list[str] = field(default_factory=list)
    confidence: float | None = None


def _is_system_event(event: TimelineEvent) -> bool:
    return str(event.type) in SYSTEM_EVENT_TYPES


def _impact_rank(event: TimelineEvent) -> int:
    if event.impact is None:
        return 0
    return IMPACT_RANK.get(str(event.impact), 0)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def compare_events(a: TimelineEvent, b: TimelineEvent) -> int:
    """Compare two events for relevance. Negative means a sorts first.

    Precedence: system events, impact, change percent, recency.
    """
    a_system = _is_system_event(a)
    b_system = _is_system_event(b)
    if a_system != b_system:
        return -1 if a_system else 1

    impact_diff = _impact_rank(b) - _impact_rank(a)
    if impact_diff != 0:
        return impact_diff

    if a.change_percent is not None and b.change_percent is not None:
        if a.change_percent != b.change_percent:
            return -1 if a.change_percent > b.change_percent else 1

    a_time = _as_utc(a.timestamp)
    b_time = _as_utc(b.timestamp)
    if a_time != b_time:
        return -1 if a_time > b_time else 1
    return 0


def sort_events_by_relevance(events: Sequence[TimelineEvent]) -> list[TimelineEvent]:
    """Return events ordered by relevance. Ties keep their input order."""
    return sorted(events, key=functools.cmp_to_key(compare_events))


def group_similar_events(
    events: Sequence[TimelineEvent],
) -> dict[str, list[TimelineEvent]]:
    """Group events by market and event type, keyed as "{market}-{type}"."""
    groups: dict[str, list[TimelineEvent]] = defaultdict(list)
    for event in events:
        groups[f"{event.market}-{event.type}"].append(event)
    return dict(groups)


def calculate_title_similarity(title1: str | None, title2: str | None) -> float:
    """Word-overlap similarity between two titles, 0.0-1.0.

    Counts words of the first title that appear anywhere in the second.
    """
    if not title1 or not title2:
        return 0.0

    words1 = title1.lower().split()
    words2 = title2.lower().split()
    if not words1 and not words2:
        return 0.0

    vocabulary2 = set(words2)
    common = sum(1 for word in words1 if word in vocabulary2)
    return (common * 2) / (len(words1) + len(words2))


def _recent_markets(events: Sequence[TimelineEvent], now: datetime) -> list[str]:
    markets: list[str] = []
    for event in events:
        if now - _as_utc(event.timestamp) < RECENT_WINDOW and event.market not in markets:
            markets.append(event.market)
    return markets


def detect_cross_market_patterns(
    events: Sequence[TimelineEvent],
    now: datetime | None = None,
) -> PatternDetection:
    """Detect coordinated activity across markets.

    1. 3+ distinct markets with events in the last hour -> simultaneous_update
    2. 3+ events whose titles closely match an event in another market -> similar_content
    Simultaneous updates take precedence.
    """
    current_time = _as_utc(now) if now is not None else datetime.now(UTC)

    recent_markets = _recent_markets(events, current_time)
    if len(recent_markets) >= MIN_SIMULTANEOUS_MARKETS:
        confidence = min(MAX_SIMULTANEOUS_CONFIDENCE, CONFIDENCE_PER_MARKET * len(recent_markets))
        return PatternDetection(
            has_pattern=True,
            pattern_type="simultaneous_update",
            affected_markets=sorted(recent_markets),
            confidence=round(confidence, 2),
        )

    matched = [
        event
        for index, event in enumerate(events)
        if any(
            other_index != index
            and other.market != event.market
            and calculate_title_similarity(event.title, other.title) > TITLE_SIMILARITY_THRESHOLD
            for other_index, other in enumerate(events)
        )
    ]

    if len(matched) >= MIN_SIMILAR_EVENTS:
        return PatternDetection(
            has_pattern=True,
            pattern_type="similar_content",
            affected_markets=sorted({event.market for event in matched}),
            confidence=SIMILAR_CONTENT_CONFIDENCE,
        )

    return PatternDetection(has_pattern=False)
