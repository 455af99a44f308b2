"""Page storage with change detection, validation and event logging."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from src.domains.activity.core.change_estimation import detect_page_change
from src.domains.activity.core.content_quality import (
    DEFAULT_QUALITY_RULES,
    calculate_quality_score,
    is_excluded_title,
    is_excluded_url,
    validate_for_storage,
)
from src.domains.activity.core.fingerprint import compute_fingerprint, count_words
from src.models.content_page import ContentPage
from src.models.page_event import EventType, PageEvent

if TYPE_CHECKING:
    from src.domains.activity.core.content_quality import QualityRules
    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository
    from src.domains.activity.services.page_enricher import PageEnricher
    from src.services.database import Database

logger = structlog.get_logger(__name__)

# Fields carried over from the stored page when content is unchanged
_ENRICHMENT_FIELDS = ("summary", "summary_en", "category", "content_type", "tags", "signals")


class StoreStatus(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    REJECTED = "rejected"


@dataclass
class StoreResult:
    """Outcome of storing one crawled page."""

    url: str
    status: StoreStatus
    page_id: int | None = None
    event_id: int | None = None
    change_pct: int = 0
    quality_score: int | None = None
    reasons: list[str] = field(default_factory=list)


class PageStore:
    """Stores crawled pages and appends one event per create or update.

    An identical fingerprint refreshes ``last_crawled_at`` only. A page that
    fails validation writes nothing. The page write and its event are one
    transaction.
    """

    def __init__(
        self,
        db: Database,
        page_repo: ContentPageRepository,
        event_repo: PageEventRepository,
        enricher: PageEnricher | None = None,
        quality_rules: QualityRules = DEFAULT_QUALITY_RULES,
    ) -> None:
        self.db = db
        self.page_repo = page_repo
        self.event_repo = event_repo
        self.enricher = enricher
        self.quality_rules = quality_rules

    def _prepare(
        self,
        page: dict[str, Any],
        existing: dict[str, Any] | None,
        changed: bool,
    ) -> dict[str, Any]:
        if existing is not None and not changed:
            carried = {key: existing.get(key) for key in _ENRICHMENT_FIELDS}
            return {**page, **{k: v for k, v in carried.items() if v not in (None, [], {})}}
        if self.enricher is None or self._excluded(page):
            return dict(page)
        return self.enricher.enrich(page)

    def _excluded(self, page: dict[str, Any]) -> bool:
        """URL or title exclusion rejects the page whatever enrichment adds."""
        return is_excluded_url(page.get("url"), self.quality_rules) or is_excluded_title(
            page.get("title"), self.quality_rules
        )

    def store_page(self, page: dict[str, Any], crawled_at: datetime | None = None) -> StoreResult:
        """Fingerprint, validate, score and persist one raw page.

        Raises TypeError for non-string text fields and pydantic
        ValidationError for values the ContentPage model rejects.
        """
        now = crawled_at or datetime.now(UTC)
        url = page.get("url")
        if not isinstance(url, str):
            msg = f"url must be a string, got {type(url).__name__}"
            raise TypeError(msg)

        text = page.get("text_content")
        change_hash = compute_fingerprint(text)
        word_count = count_words(text)

        existing = self.page_repo.get_page_by_url(url) if url else None
        changed, change_pct = detect_page_change(
            existing["change_hash"] if existing else None,
            change_hash,
            existing.get("text_content") if existing else None,
            text,
        )

        prepared = self._prepare(page, existing, changed)
        prepared["word_count"] = word_count

        validation = validate_for_storage(prepared, self.quality_rules)
        if not validation.is_valid:
            logger.info("page_rejected", url=url, reasons=validation.reasons)
            return StoreResult(url=url, status=StoreStatus.REJECTED, reasons=validation.reasons)

        quality_score = calculate_quality_score(prepared, self.quality_rules)

        if existing is not None and not changed:
            self.page_repo.touch_crawled(existing["id"], now)
            logger.debug("page_unchanged", url=url, page_id=existing["id"])
            return StoreResult(
                url=url,
                status=StoreStatus.UNCHANGED,
                page_id=existing["id"],
                quality_score=existing.get("quality_score"),
            )

        model = ContentPage.model_validate(
            {
                **prepared,
                "text_content": text,
                "change_hash": change_hash,
                "change_pct": change_pct,
                "quality_score": quality_score,
                "last_crawled_at": now,
                "last_modified_at": now,
            }
        )
        data = model.model_dump()
        event_type = EventType.UPDATED if existing is not None else EventType.CREATED

        with self.db.transaction():
            if existing is not None:
                page_id = existing["id"]
                self.page_repo.update_page(page_id, data)
            else:
                page_id = self.page_repo.insert_page(data)

            event_id = self.event_repo.append_event(
                PageEvent(
                    page_id=page_id,
                    url=url,
                    event_type=event_type,
                    event_at=now,
                    change_pct=change_pct,
                    market=model.market,
                    language=model.language,
                    title=model.title,
                    summary=model.summary_en or model.summary,
                )
            )

        logger.info(
            "page_stored",
            url=url,
            page_id=page_id,
            event_type=str(event_type),
            change_pct=change_pct,
            quality_score=quality_score,
        )
        return StoreResult(
            url=url,
            status=StoreStatus(str(event_type)),
            page_id=page_id,
            event_id=event_id,
            change_pct=change_pct,
            quality_score=quality_score,
        )

    def refresh_enrichment(self, page_id: int) -> dict[str, Any] | None:
        """Re-run enrichment for a stored page without changing its content state.

        Returns the updated enrichment fields, or None if the page is missing
        or no enricher is configured.
        """
        existing = self.page_repo.get_page_by_id(page_id)
        if existing is None or self.enricher is None:
            return None
        enriched = self.enricher.enrich(existing)
        enriched["quality_score"] = calculate_quality_score(enriched, self.quality_rules)
        self.page_repo.update_enrichment(page_id, enriched)
        logger.info("page_enrichment_refreshed", page_id=page_id, url=existing["url"])
        return {
            key: enriched.get(key)
            for key in ("summary", "summary_en", "category", "content_type", "quality_score")
        }
