"""Activity domain core -- pure functions for page change detection and quality assessment."""

from __future__ import annotations

from src.domains.activity.core.categorization import (
    CategorizationResult,
    categorize_by_keywords,
    detect_content_type,
    extract_signals,
    extract_tags,
)
from src.domains.activity.core.change_estimation import (
    ChangeImpact,
    derive_impact,
    detect_page_change,
    estimate_change_percentage,
)
from src.domains.activity.core.content_quality import (
    DEFAULT_QUALITY_RULES,
    QualityRules,
    ValidationResult,
    calculate_quality_score,
    is_excluded_title,
    is_excluded_url,
    meets_quality_threshold,
    validate_event_for_timeline,
    validate_for_storage,
)
from src.domains.activity.core.event_ranking import (
    PatternDetection,
    calculate_title_similarity,
    detect_cross_market_patterns,
    group_similar_events,
    sort_events_by_relevance,
)
from src.domains.activity.core.fingerprint import compute_fingerprint, count_words
from src.domains.activity.core.market_health import (
    HealthTrend,
    MarketActivity,
    MarketHealth,
    calculate_market_health,
    summarize_health,
)

__all__ = [
    # categorization
    "CategorizationResult",
    "categorize_by_keywords",
    "detect_content_type",
    "extract_signals",
    "extract_tags",
    # change_estimation
    "ChangeImpact",
    "derive_impact",
    "detect_page_change",
    "estimate_change_percentage",
    # content_quality
    "DEFAULT_QUALITY_RULES",
    "QualityRules",
    "ValidationResult",
    "calculate_quality_score",
    "is_excluded_title",
    "is_excluded_url",
    "meets_quality_threshold",
    "validate_event_for_timeline",
    "validate_for_storage",
    # event_ranking
    "PatternDetection",
    "calculate_title_similarity",
    "detect_cross_market_patterns",
    "group_similar_events",
    "sort_events_by_relevance",
    # fingerprint
    "compute_fingerprint",
    "count_words",
    # market_health
    "HealthTrend",
    "MarketActivity",
    "MarketHealth",
    "calculate_market_health",
    "summarize_health",
]
