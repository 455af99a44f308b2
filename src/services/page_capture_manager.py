"""Sequential page capture and import manager."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from src.core.transformers import prepare_imported_page, prepare_page_data
from src.models.processing_error import ProcessingError
from src.services.firecrawl_client import ScrapeStatus
from src.utils.progress import ProgressTracker

if TYPE_CHECKING:
    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.services.page_store import PageStore, StoreResult
    from src.services.protocols import WebScraperProtocol

logger = structlog.get_logger(__name__)


class PageCaptureManager:
    """Feeds scraped or imported pages through PageStore one URL at a time.

    Per-URL failures are logged, recorded as processing errors and counted;
    the run continues with the next URL.
    """

    def __init__(
        self,
        page_store: PageStore,
        page_repo: ContentPageRepository,
        scraper: WebScraperProtocol | None = None,
    ) -> None:
        self.page_store = page_store
        self.page_repo = page_repo
        self.scraper = scraper

    def _record_error(
        self, url: str | None, exc: Exception | str, error_type: str | None = None
    ) -> None:
        self.page_repo.store_processing_error(ProcessingError.for_page(url, exc, error_type))

    def _store(self, tracker: ProgressTracker, page: dict[str, Any]) -> StoreResult | None:
        url = page.get("url")
        try:
            result = self.page_store.store_page(page)
        except Exception as exc:
            logger.error("page_store_failed", url=url, error=str(exc))
            tracker.record_failure(url, str(exc))
            self._record_error(url, exc)
            return None
        tracker.record_outcome(str(result.status))
        return result

    def capture_pages(self, urls: list[str]) -> dict[str, Any]:
        """Scrape and store each URL. Returns summary stats dict."""
        if self.scraper is None:
            msg = "a scraper is required to capture pages"
            raise ValueError(msg)

        tracker = ProgressTracker(total=len(urls), run="capture")
        for url in urls:
            outcome = self.scraper.scrape_page(url)
            if outcome.status == ScrapeStatus.RATE_LIMITED:
                tracker.record_failure(url, f"rate limited after {outcome.attempts} attempts")
                self._record_error(url, outcome.error or "rate limited", "RateLimited")
            elif outcome.status == ScrapeStatus.FAILED:
                tracker.record_failure(url, outcome.error or "scrape failed")
                self._record_error(url, outcome.error or "scrape failed", "ScrapeFailed")
            else:
                self._store(tracker, prepare_page_data(outcome))
            tracker.log_progress(every_n=10)

        return tracker.summary()

    def import_pages(self, records: list[dict[str, Any]]) -> dict[str, Any]:
        """Store pages from exported records without scraping. Returns summary stats dict."""
        tracker = ProgressTracker(total=len(records), run="import")
        for record in records:
            try:
                page = prepare_imported_page(record)
            except (KeyError, TypeError, AttributeError) as exc:
                logger.warning("page_import_invalid_record", error=str(exc))
                tracker.record_failure(None, f"invalid record: {exc}")
                self._record_error(None, f"invalid record: {exc}", "InvalidRecord")
                continue
            self._store(tracker, page)
            tracker.log_progress(every_n=50)

        return tracker.summary()
