"""Page event model for the append-only activity log."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator


class EventType(StrEnum):
    """Kind of activity recorded for a page or market."""

    CREATED = "created"
    UPDATED = "updated"
    PATTERN = "pattern"
    ALERT = "alert"


class PageEvent(BaseModel):
    """A single immutable entry in the page activity log."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    page_id: int | None = None
    url: str | None = None
    event_type: EventType
    event_at: datetime
    change_pct: int | None = None
    market: str | None = None
    language: str | None = None
    title: str | None = None
    summary: str | None = None

    @field_validator("change_pct")
    @classmethod
    def validate_change_pct(cls, value: int | None) -> int | None:
        """Change percentage must be between 0 and 100."""
        if value is not None and (value < 0 or value > 100):
            msg = "change_pct must be between 0 and 100"
            raise ValueError(msg)
        return value

    @property
    def is_system_generated(self) -> bool:
        """Pattern and alert events are not tied to a single page."""
        return self.event_type in (EventType.PATTERN, EventType.ALERT)
