"""Failed scrape, store and import operations kept for later inspection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.validators import is_valid_url

MAX_ERROR_MESSAGE_LENGTH = 5000


class ProcessingError(BaseModel):
    """One failed operation on a page or event, as stored in processing_errors."""

    model_config = ConfigDict(strict=True)

    entity_type: Literal["page", "event"]
    entity_id: int | None = None
    url: str | None = None
    error_type: str = Field(pattern=r"^[A-Z][a-zA-Z0-9]{0,99}$")
    error_message: str = Field(min_length=1, max_length=MAX_ERROR_MESSAGE_LENGTH)
    retry_count: int = Field(default=0, ge=0, le=5)
    occurred_at: datetime

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_url(value):
            msg = f"url is not a valid http(s) URL: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def for_page(
        cls,
        url: str | None,
        error: Exception | str,
        error_type: str | None = None,
    ) -> ProcessingError:
        """Build a page-level error, truncating long messages.

        ``error_type`` defaults to the exception class name.
        """
        message = str(error).strip()[:MAX_ERROR_MESSAGE_LENGTH]
        kind = error_type or type(error).__name__
        return cls(
            entity_type="page",
            url=url if url and is_valid_url(url) else None,
            error_type=kind,
            error_message=message or kind,
            occurred_at=datetime.now(UTC),
        )
