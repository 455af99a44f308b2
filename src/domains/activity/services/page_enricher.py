"""Page enrichment: summaries, category, content type, tags and signals."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from src.domains.activity.core.categorization import (
    CONTENT_CATEGORIES,
    CONTENT_TYPES,
    categorize_by_keywords,
    extract_tags,
)

if TYPE_CHECKING:
    from src.services.protocols import PageAnalyzerProtocol

logger = structlog.get_logger(__name__)

ENGLISH = "en"


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _known(allowed: Mapping[str, Any], *candidates: Any) -> str | None:
    """First candidate that is a known key of ``allowed``."""
    for candidate in candidates:
        value = _clean(candidate)
        if value in allowed:
            return value
    return None


class PageEnricher:
    """Adds summary, summary_en, category, content_type, tags and signals to a raw page.

    The LLM is used when configured. Anything it does not return falls back
    to values already on the page, then to keyword categorization; the page
    description stands in for a missing summary.
    """

    def __init__(self, llm_client: PageAnalyzerProtocol | None = None) -> None:
        self.llm_client = llm_client

    def _analyze_with_llm(self, page: dict[str, Any], text: str) -> dict[str, Any]:
        if self.llm_client is None or not text.strip():
            return {}
        try:
            analysis = self.llm_client.analyze_page(
                url=page["url"],
                title=page.get("title"),
                content=text,
                language=page.get("language"),
            )
        except Exception as exc:
            logger.warning("llm_enrichment_unavailable", url=page.get("url"), error=str(exc))
            return {}
        if analysis.get("error"):
            logger.info("llm_enrichment_fallback", url=page.get("url"), error=analysis["error"])
        return analysis

    def enrich(self, page: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``page`` with enrichment fields filled in."""
        text = page.get("text_content") or ""
        title = page.get("title") or ""
        url = page["url"]

        keyword_result = categorize_by_keywords(text, title, url, page.get("html"))
        analysis = self._analyze_with_llm(page, text)

        category = (
            _known(CONTENT_CATEGORIES, analysis.get("category"), page.get("category"))
            or keyword_result.category
        )
        content_type = (
            _known(CONTENT_TYPES, analysis.get("content_type"), page.get("content_type"))
            or keyword_result.content_type
        )

        summary = (
            _clean(analysis.get("summary"))
            or _clean(page.get("summary"))
            or _clean(page.get("description"))
        )
        summary_en = _clean(analysis.get("summary_en")) or _clean(page.get("summary_en"))
        if summary_en is None and page.get("language") == ENGLISH:
            summary_en = summary

        source = "llm" if analysis and not analysis.get("error") else "keywords"

        enriched = dict(page)
        enriched.update(
            {
                "summary": summary,
                "summary_en": summary_en,
                "category": category,
                "content_type": content_type,
                "tags": extract_tags(text, url, page.get("keywords")),
                "signals": keyword_result.signals,
                "enrichment_source": source,
            }
        )
        logger.debug(
            "page_enriched",
            url=url,
            category=category,
            content_type=content_type,
            source=enriched["enrichment_source"],
        )
        return enriched
