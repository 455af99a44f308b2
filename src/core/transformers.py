"""Data transformation functions for converting scrape results to raw page dicts."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from src.core.markets import language_from_url, market_from_url
from src.utils.validators import extract_domain

if TYPE_CHECKING:
    from src.services.firecrawl_client import ScrapeOutcome

_LANGUAGE_CODE = re.compile(r"^[a-zA-Z]{2,3}")
_IMPORTED_ENRICHMENT_FIELDS = ("summary", "summary_en", "category", "content_type")


def parse_publish_date(value: Any) -> datetime | None:
    """Parse an ISO-8601 publish date (datetime or string). Returns None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _language_code(value: Any) -> str | None:
    """Reduce metadata language values such as "de-DE" to "de"."""
    if not isinstance(value, str):
        return None
    match = _LANGUAGE_CODE.match(value.strip())
    return match.group(0).lower() if match else None


def _base_page(url: str, market: str | None, language: str | None) -> dict[str, Any]:
    resolved_market = market or market_from_url(url)
    return {
        "url": url,
        "domain": extract_domain(url),
        "path": urlparse(url).path or "/",
        "market": resolved_market,
        "language": language or language_from_url(url),
    }


def prepare_page_data(outcome: ScrapeOutcome, market: str | None = None) -> dict[str, Any]:
    """Transform a successful Firecrawl scrape into a raw page dict.

    The returned dict is what PageStore.store_page expects. ``text_content``
    is the page markdown.
    """
    page = _base_page(outcome.url, market, _language_code(outcome.metadata.get("language")))
    page.update(
        {
            "title": (outcome.title or "").strip() or None,
            "description": (outcome.description or "").strip() or None,
            "text_content": outcome.markdown,
            "html": outcome.html,
            "keywords": outcome.keywords,
            "publish_date": outcome.publish_date,
        }
    )
    return page


def prepare_imported_page(record: dict[str, Any]) -> dict[str, Any]:
    """Transform one record of a JSON page export into a raw page dict.

    Accepts ``text_content``, ``markdown`` or ``content`` for the page text.
    Raises KeyError when ``url`` is missing.
    """
    url = str(record["url"]).strip()
    page = _base_page(url, record.get("market"), _language_code(record.get("language")))
    text = record.get("text_content")
    if text is None:
        text = record.get("markdown", record.get("content"))
    page.update(
        {
            "title": record.get("title"),
            "description": record.get("description"),
            "text_content": text,
            "html": record.get("html"),
            "keywords": record.get("keywords"),
            "publish_date": parse_publish_date(
                record.get("publish_date") or record.get("publishDate")
            ),
        }
    )
    # Exports may already carry enrichment; the enricher keeps what it cannot improve on
    page.update({key: record[key] for key in _IMPORTED_ENRICHMENT_FIELDS if record.get(key)})
    return page
