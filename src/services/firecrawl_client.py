"""Firecrawl API client for scraping market pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

import structlog
from firecrawl import Firecrawl

from src.core.transformers import parse_publish_date
from src.utils.retry import retry_with_logging

logger = structlog.get_logger(__name__)

# Headers and footers carry calculator links and forms used for page signals
_ONLY_MAIN_CONTENT = False

HTTP_TOO_MANY_REQUESTS = 429
HTTP_CLIENT_ERROR = 400


class ScrapeStatus(StrEnum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


@dataclass
class ScrapeOutcome:
    """Explicit result of a scrape. Library exceptions never escape the client."""

    url: str
    status: ScrapeStatus
    title: str | None = None
    description: str | None = None
    markdown: str = ""
    html: str | None = None
    keywords: str | None = None
    publish_date: datetime | None = None
    status_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.status == ScrapeStatus.OK


class RateLimitedError(Exception):
    """Raised inside the client when Firecrawl or the target answers 429."""


def _get_metadata_field(metadata: Any, snake_key: str, camel_key: str) -> Any:
    """Extract a field from metadata, handling both Pydantic objects and dicts.

    Firecrawl v2 returns DocumentMetadata Pydantic objects (snake_case attrs),
    but older versions or mocks may return plain dicts (camelCase keys).
    """
    if metadata is None:
        return None
    if isinstance(metadata, dict):
        return metadata.get(camel_key) or metadata.get(snake_key)
    return getattr(metadata, snake_key, None)


def _metadata_as_dict(metadata: Any) -> dict[str, Any]:
    if metadata is None:
        return {}
    if isinstance(metadata, dict):
        return dict(metadata)
    if hasattr(metadata, "model_dump"):
        return {k: v for k, v in metadata.model_dump().items() if v is not None}
    return {}


def _keywords_text(value: Any) -> str | None:
    if isinstance(value, list | tuple):
        return ", ".join(str(item) for item in value) or None
    return value or None


def _is_rate_limit_error(exc: Exception) -> bool:
    status = getattr(exc, "status_code", None)
    if status == HTTP_TOO_MANY_REQUESTS:
        return True
    message = str(exc).lower()
    return "429" in message or "rate limit" in message


class FirecrawlClient:
    """Client for Firecrawl web scraping API v2."""

    def __init__(
        self,
        api_key: str,
        max_attempts: int = 3,
        wait_min: float = 2,
        wait_max: float = 10,
        client: Any = None,
    ) -> None:
        self.client = client if client is not None else Firecrawl(api_key=api_key)
        self.max_attempts = max_attempts
        self._scrape_with_retry = retry_with_logging(
            max_attempts=max_attempts,
            retry_on=(RateLimitedError, ConnectionError, TimeoutError),
            wait_min=wait_min,
            wait_max=wait_max,
        )(self._scrape_once)
        self._attempts = 0

    def _scrape_once(self, url: str) -> Any:
        self._attempts += 1
        try:
            result = self.client.scrape(
                url,
                formats=["markdown", "html"],
                only_main_content=_ONLY_MAIN_CONTENT,
                block_ads=True,
                wait_for=2000,
                timeout=30000,
            )
        except Exception as exc:
            if _is_rate_limit_error(exc):
                raise RateLimitedError(str(exc)) from exc
            raise

        metadata = getattr(result, "metadata", None)
        status_code = _get_metadata_field(metadata, "status_code", "statusCode")
        if status_code == HTTP_TOO_MANY_REQUESTS:
            msg = f"target answered {HTTP_TOO_MANY_REQUESTS}"
            raise RateLimitedError(msg)
        return result

    def scrape_page(self, url: str) -> ScrapeOutcome:
        """Scrape a single URL.

        Rate limits and network errors are retried with exponential backoff.
        Returns a ScrapeOutcome whose status is ok, rate_limited or failed.
        """
        self._attempts = 0
        try:
            result = self._scrape_with_retry(url)
        except RateLimitedError as exc:
            logger.warning("firecrawl_rate_limited", url=url, attempts=self._attempts)
            return ScrapeOutcome(
                url=url, status=ScrapeStatus.RATE_LIMITED, error=str(exc), attempts=self._attempts
            )
        except Exception as exc:
            logger.error("firecrawl_scrape_failed", url=url, error=str(exc))
            return ScrapeOutcome(
                url=url, status=ScrapeStatus.FAILED, error=str(exc), attempts=self._attempts
            )

        metadata = getattr(result, "metadata", None)
        status_code = _get_metadata_field(metadata, "status_code", "statusCode")
        source_url = _get_metadata_field(metadata, "source_url", "sourceURL") or url

        if status_code is not None and status_code >= HTTP_CLIENT_ERROR:
            logger.warning("firecrawl_http_error", url=url, status_code=status_code)
            return ScrapeOutcome(
                url=source_url,
                status=ScrapeStatus.FAILED,
                status_code=status_code,
                error=f"HTTP {status_code}",
                attempts=self._attempts,
            )

        published = _get_metadata_field(metadata, "published_time", "publishedTime") or (
            _get_metadata_field(metadata, "article_published_time", "article:published_time")
        )

        return ScrapeOutcome(
            url=source_url,
            status=ScrapeStatus.OK,
            title=_get_metadata_field(metadata, "title", "title"),
            description=_get_metadata_field(metadata, "description", "description"),
            markdown=getattr(result, "markdown", None) or "",
            html=getattr(result, "html", None),
            keywords=_keywords_text(_get_metadata_field(metadata, "keywords", "keywords")),
            publish_date=parse_publish_date(published),
            status_code=status_code,
            metadata=_metadata_as_dict(metadata),
            attempts=self._attempts,
        )
