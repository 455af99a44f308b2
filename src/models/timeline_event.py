"""Timeline event model handed to the presentation layer."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from src.models.page_event import EventType


class ImpactLevel(StrEnum):
    """Display impact of a timeline entry."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimelineEvent(BaseModel):
    """A page or system event shaped for timeline display and ranking."""

    id: str
    type: EventType
    timestamp: datetime
    market: str = "unknown"
    title: str | None = None
    url: str | None = None
    description: str | None = None
    change_percent: float | None = None
    impact: ImpactLevel | None = None
    language: str | None = None
    tags: list[str] = []
    related_count: int = 0
