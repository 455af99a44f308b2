"""Quality validation and scoring for crawled pages and timeline events.

Pages and events are read as mappings with snake_case keys (``title``, ``url``,
``word_count``, ``text_content``, ...). Pydantic models are passed through
``model_dump()`` by callers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from src.domains.activity.core.text_utils import optional_count, optional_text

# --- Exclusion patterns ---

EXCLUDED_TITLE_PATTERNS: tuple[str, ...] = (
    "404",
    "not found",
    "error",
    "page not found",
    "oops",
    "coming soon",
    "under construction",
    "maintenance",
    "access denied",
    "forbidden",
    "unauthorized",
)

EXCLUDED_URL_PATTERNS: tuple[str, ...] = (
    "/404",
    "/error",
    "/admin",
    "/login",
    "/wp-admin",
    "/wp-login",
    "/test",
    "/_next",
    "/api/",
    "/cgi-bin/",
    "/.well-known/",
    "/robots.txt",
    "/sitemap.xml",
)

CONTENT_INDICATORS: tuple[str, ...] = (
    "lorem ipsum",
    "coming soon",
    "under development",
    "test content",
    "example content",
)

NON_PAGE_SUFFIXES: tuple[str, ...] = (".pdf", ".jpg", ".png", ".gif", ".zip", ".exe")

# Content types that carry marketing insight
PRIORITY_CONTENT_TYPES: tuple[str, ...] = (
    "article",
    "landing_page",
    "product_page",
    "campaign",
    "blog_post",
    "press_release",
    "news",
    "guide",
    "resource",
)

SYSTEM_EVENT_TYPES: frozenset[str] = frozenset({"pattern", "alert"})

# --- Quality score weights ---

SCORE_WEIGHTS: dict[str, int] = {
    "has_title": 20,
    "has_description": 15,
    "has_publish_date": 15,
    "has_summary_en": 20,
    "has_good_word_count": 15,
    "is_priority_type": 15,
}

MIN_SUMMARY_EN_LENGTH = 50
GOOD_WORD_COUNT = 300
MAX_QUALITY_SCORE = 100


@dataclass(frozen=True)
class QualityRules:
    """Exclusion patterns and thresholds used by every validation function."""

    excluded_title_patterns: tuple[str, ...] = EXCLUDED_TITLE_PATTERNS
    excluded_url_patterns: tuple[str, ...] = EXCLUDED_URL_PATTERNS
    content_indicators: tuple[str, ...] = CONTENT_INDICATORS
    non_page_suffixes: tuple[str, ...] = NON_PAGE_SUFFIXES
    priority_content_types: tuple[str, ...] = PRIORITY_CONTENT_TYPES
    min_word_count: int = 100
    min_title_length: int = 10
    max_title_length: int = 200
    min_description_length: int = 20
    max_url_length: int = 500


DEFAULT_QUALITY_RULES = QualityRules()


@dataclass
class ValidationResult:
    """Outcome of storage validation. Failures are listed, not raised."""

    is_valid: bool
    reasons: list[str] = field(default_factory=list)


def _contains_any(text: str, patterns: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


def is_excluded_title(title: str | None, rules: QualityRules = DEFAULT_QUALITY_RULES) -> bool:
    """Check if a title is missing or indicates an error/placeholder page."""
    if title is not None and not isinstance(title, str):
        msg = f"title must be a string or None, got {type(title).__name__}"
        raise TypeError(msg)
    if not title:
        return True
    return _contains_any(title, rules.excluded_title_patterns)


def is_excluded_url(url: str | None, rules: QualityRules = DEFAULT_QUALITY_RULES) -> bool:
    """Check if a URL is missing, points at a non-content path, or is not a web page."""
    if url is not None and not isinstance(url, str):
        msg = f"url must be a string or None, got {type(url).__name__}"
        raise TypeError(msg)
    if not url:
        return True

    if _contains_any(url, rules.excluded_url_patterns):
        return True

    # Very long URLs are usually broken session or tracking links
    if len(url) > rules.max_url_length:
        return True

    lowered = url.lower()
    return any(lowered.endswith(suffix.lower()) for suffix in rules.non_page_suffixes)


def meets_quality_threshold(
    page: Mapping[str, Any], rules: QualityRules = DEFAULT_QUALITY_RULES
) -> bool:
    """Check minimum title, word count and content standards.

    A page without a word_count is not rejected on word count alone.
    """
    title = optional_text(page, "title")
    if not title or len(title) < rules.min_title_length:
        return False
    if len(title) > rules.max_title_length:
        return False

    word_count = optional_count(page, "word_count")
    if word_count is not None and word_count < rules.min_word_count:
        return False

    text_content = optional_text(page, "text_content")
    return not (text_content and _contains_any(text_content, rules.content_indicators))


def validate_for_storage(
    page: Mapping[str, Any], rules: QualityRules = DEFAULT_QUALITY_RULES
) -> ValidationResult:
    """Validate a page before storing it. Collects every failing reason."""
    reasons: list[str] = []

    url = optional_text(page, "url")
    if not url:
        reasons.append("Missing URL")
    elif is_excluded_url(url, rules):
        reasons.append("URL matches exclusion pattern")

    title = optional_text(page, "title")
    if not title:
        reasons.append("Missing title")
    elif is_excluded_title(title, rules):
        reasons.append("Title indicates low-quality content")

    if not meets_quality_threshold(page, rules):
        reasons.append("Content does not meet quality thresholds")

    if not optional_text(page, "market"):
        reasons.append("Missing market identifier")

    if not optional_text(page, "summary") and not optional_text(page, "summary_en"):
        reasons.append("Missing content summary")

    return ValidationResult(is_valid=not reasons, reasons=reasons)


def validate_event_for_timeline(
    event: Mapping[str, Any], rules: QualityRules = DEFAULT_QUALITY_RULES
) -> bool:
    """Check whether an event should be shown on the timeline.

    Pattern and alert events are system-generated and always valid.
    """
    event_type = event.get("event_type")
    if not event_type or not event.get("event_at"):
        return False

    if event_type in SYSTEM_EVENT_TYPES:
        return True

    title = optional_text(event, "title")
    if title and is_excluded_title(title, rules):
        return False

    url = optional_text(event, "url")
    return not (url and is_excluded_url(url, rules))


def calculate_quality_score(
    page: Mapping[str, Any], rules: QualityRules = DEFAULT_QUALITY_RULES
) -> int:
    """Calculate a 0-100 completeness score used to rank timeline entries."""
    score = 0

    title = optional_text(page, "title")
    if title and len(title) > rules.min_title_length:
        score += SCORE_WEIGHTS["has_title"]

    description = optional_text(page, "description")
    if description and len(description) > rules.min_description_length:
        score += SCORE_WEIGHTS["has_description"]

    if page.get("publish_date"):
        score += SCORE_WEIGHTS["has_publish_date"]

    summary_en = optional_text(page, "summary_en")
    if summary_en and len(summary_en) > MIN_SUMMARY_EN_LENGTH:
        score += SCORE_WEIGHTS["has_summary_en"]

    word_count = optional_count(page, "word_count")
    if word_count is not None and word_count > GOOD_WORD_COUNT:
        score += SCORE_WEIGHTS["has_good_word_count"]

    content_type = optional_text(page, "content_type")
    if content_type and content_type in rules.priority_content_types:
        score += SCORE_WEIGHTS["is_priority_type"]

    return min(MAX_QUALITY_SCORE, score)
