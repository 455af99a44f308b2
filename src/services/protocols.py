"""Service protocols defining interfaces for dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from src.services.firecrawl_client import ScrapeOutcome


class WebScraperProtocol(Protocol):
    """Protocol for web scraping services."""

    def scrape_page(self, url: str) -> ScrapeOutcome: ...


class PageAnalyzerProtocol(Protocol):
    """Protocol for LLM page analysis services."""

    def analyze_page(
        self,
        url: str,
        title: str | None,
        content: str,
        language: str | None = None,
    ) -> dict[str, Any]: ...
