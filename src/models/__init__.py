"""Pydantic data models for the Market Activity Monitor."""

from src.models.config import Config
from src.models.content_page import ContentPage, PageSignals
from src.models.page_event import EventType, PageEvent
from src.models.processing_error import ProcessingError
from src.models.timeline_event import ImpactLevel, TimelineEvent

__all__ = [
    "Config",
    "ContentPage",
    "EventType",
    "ImpactLevel",
    "PageEvent",
    "PageSignals",
    "ProcessingError",
    "TimelineEvent",
]
