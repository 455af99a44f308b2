"""Content page model for crawled market web pages."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.validators import is_valid_sha256, is_valid_url


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class PageSignals(BaseModel):
    """Fixed set of page features detected during enrichment."""

    model_config = ConfigDict(extra="forbid")

    has_video: bool = False
    has_calculator: bool = False
    has_form: bool = False
    has_references: bool = False
    reading_time: int | None = None

    @field_validator("reading_time")
    @classmethod
    def validate_reading_time(cls, value: int | None) -> int | None:
        """Reading time in minutes must not be negative."""
        if value is not None and value < 0:
            msg = "reading_time must be >= 0"
            raise ValueError(msg)
        return value


class ContentPage(BaseModel):
    """Latest known state of a crawled page."""

    id: int | None = None
    url: str
    domain: str | None = None
    path: str | None = None
    market: str | None = None
    language: str | None = None
    title: str | None = None
    description: str | None = None
    text_content: str | None = None
    word_count: int = 0
    change_hash: str
    change_pct: int = 0
    publish_date: datetime | None = None
    summary: str | None = None
    summary_en: str | None = None
    category: str | None = None
    content_type: str | None = None
    tags: list[str] = []
    signals: PageSignals = Field(default_factory=PageSignals)
    quality_score: int = 0
    last_crawled_at: datetime = Field(default_factory=_utc_now)
    last_modified_at: datetime = Field(default_factory=_utc_now)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """URL must be an absolute HTTP/HTTPS URL."""
        if not is_valid_url(value):
            msg = "url must be an absolute http(s) URL"
            raise ValueError(msg)
        return value

    @field_validator("word_count")
    @classmethod
    def validate_word_count(cls, value: int) -> int:
        """Word count must not be negative."""
        if value < 0:
            msg = "word_count must be >= 0"
            raise ValueError(msg)
        return value

    @field_validator("change_hash")
    @classmethod
    def validate_change_hash(cls, value: str) -> str:
        """Change hash must be a 64-character hex SHA-256 digest."""
        lowered = value.lower()
        if not is_valid_sha256(lowered):
            msg = "change_hash must be a valid 64-character hex SHA-256 string"
            raise ValueError(msg)
        return lowered

    @field_validator("change_pct", "quality_score")
    @classmethod
    def validate_percentage(cls, value: int) -> int:
        """Percent-style fields must be between 0 and 100."""
        if value < 0 or value > 100:
            msg = "value must be between 0 and 100"
            raise ValueError(msg)
        return value
