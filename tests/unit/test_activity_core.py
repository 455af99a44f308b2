"""Unit tests for the activity domain core modules.

Tests cover: fingerprint, change_estimation, content_quality, event_ranking,
categorization, market_health and the trends rising score.
All modules contain pure functions -- no mocking or I/O required.
"""

from __future__ import annotations

import hashlib
import math
from datetime import UTC, datetime, timedelta

import pytest

from src.domains.activity.core.categorization import (
    DEFAULT_CATEGORY,
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
    calculate_quality_score,
    is_excluded_title,
    is_excluded_url,
    meets_quality_threshold,
    validate_event_for_timeline,
    validate_for_storage,
)
from src.domains.activity.core.event_ranking import (
    calculate_title_similarity,
    compare_events,
    detect_cross_market_patterns,
    group_similar_events,
    sort_events_by_relevance,
)
from src.domains.activity.core.fingerprint import compute_fingerprint, count_words
from src.domains.activity.core.market_health import (
    HealthTrend,
    MarketActivity,
    calculate_market_health,
    summarize_health,
)
from src.domains.trends.core.rising_score import calculate_rising_score, rank_rising_keywords
from src.models.page_event import EventType
from src.models.timeline_event import ImpactLevel, TimelineEvent
from tests.conftest import make_prose

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def _event(
    event_id: str,
    event_type: EventType = EventType.UPDATED,
    *,
    market: str = "de",
    minutes_ago: int = 5,
    impact: ImpactLevel | None = ImpactLevel.LOW,
    change_percent: float | None = None,
    title: str | None = "Page title",
) -> TimelineEvent:
    return TimelineEvent(
        id=event_id,
        type=event_type,
        timestamp=NOW - timedelta(minutes=minutes_ago),
        market=market,
        impact=impact,
        change_percent=change_percent,
        title=title,
    )


# ---------------------------------------------------------------------------
# 1. fingerprint.py tests
# ---------------------------------------------------------------------------


class TestComputeFingerprint:
    """Tests for compute_fingerprint."""

    def test_known_digest(self) -> None:
        expected = hashlib.sha256(b"hello world").hexdigest()
        assert compute_fingerprint("hello world") == expected

    def test_deterministic(self) -> None:
        assert compute_fingerprint("same text") == compute_fingerprint("same text")

    def test_different_text_different_digest(self) -> None:
        assert compute_fingerprint("a") != compute_fingerprint("b")

    def test_none_hashes_as_empty_string(self) -> None:
        assert compute_fingerprint(None) == hashlib.sha256(b"").hexdigest()

    def test_lowercase_hex_64(self) -> None:
        digest = compute_fingerprint("Über Gewicht")
        assert len(digest) == 64
        assert digest == digest.lower()

    def test_non_string_raises(self) -> None:
        with pytest.raises(TypeError):
            compute_fingerprint(123)  # type: ignore[arg-type]


class TestCountWords:
    def test_whitespace_tokens(self) -> None:
        assert count_words("  one  two\nthree\t") == 3

    def test_empty_and_none(self) -> None:
        assert count_words("") == 0
        assert count_words(None) == 0


# ---------------------------------------------------------------------------
# 2. change_estimation.py tests
# ---------------------------------------------------------------------------


class TestEstimateChangePercentage:
    """Tests for estimate_change_percentage."""

    def test_identical_text_is_zero(self) -> None:
        text = make_prose(50)
        assert estimate_change_percentage(text, text) == 0

    def test_both_empty_is_zero(self) -> None:
        assert estimate_change_percentage(None, None) == 0
        assert estimate_change_percentage("", "") == 0

    def test_one_side_empty_is_hundred(self) -> None:
        assert estimate_change_percentage("", "hello world") == 100
        assert estimate_change_percentage("hello world", None) == 100

    def test_single_substitution(self) -> None:
        assert estimate_change_percentage("a b c d", "a b c e") == 50

    def test_half_rounds_up(self) -> None:
        # 1 removed word out of 8 is 12.5%
        assert estimate_change_percentage("a b c d e f g h", "a b c d e f g g") == 13

    def test_small_change_not_rounded_to_zero(self) -> None:
        old = " ".join(f"w{i}" for i in range(200))
        new = " ".join(f"w{i}" for i in range(199))
        assert estimate_change_percentage(old, new) == 1

    def test_reordered_words_score_zero(self) -> None:
        assert estimate_change_percentage("a b c", "c b a") == 0

    def test_more_edits_never_lower(self) -> None:
        old = "w1 w2 w3 w4 w5 w6 w7 w8 w9 w10"
        one_edit = "x1 w2 w3 w4 w5 w6 w7 w8 w9 w10"
        three_edits = "x1 x2 x3 w4 w5 w6 w7 w8 w9 w10"
        assert estimate_change_percentage(old, one_edit) == 20
        assert estimate_change_percentage(old, three_edits) == 60

    def test_bounded_to_hundred(self) -> None:
        assert estimate_change_percentage("a", "b c d e f g") == 100

    @pytest.mark.parametrize(("old", "new"), [(1, "a"), ("a", ["b"])])
    def test_non_string_raises(self, old: object, new: object) -> None:
        with pytest.raises(TypeError):
            estimate_change_percentage(old, new)  # type: ignore[arg-type]


class TestDetectPageChange:
    def test_new_page(self) -> None:
        assert detect_page_change(None, "abc") == (True, 0)

    def test_same_hash_unchanged(self) -> None:
        assert detect_page_change("abc", "abc", "x y", "z") == (False, 0)

    def test_changed_hash_estimates(self) -> None:
        assert detect_page_change("abc", "def", "a b c d", "a b c e") == (True, 50)


class TestDeriveImpact:
    @pytest.mark.parametrize(
        ("change_pct", "expected"),
        [
            (None, ChangeImpact.LOW),
            (0, ChangeImpact.LOW),
            (20, ChangeImpact.LOW),
            (21, ChangeImpact.MEDIUM),
            (50, ChangeImpact.MEDIUM),
            (51, ChangeImpact.HIGH),
            (100, ChangeImpact.HIGH),
        ],
    )
    def test_thresholds(self, change_pct: int | None, expected: ChangeImpact) -> None:
        assert derive_impact(change_pct) == expected


# ---------------------------------------------------------------------------
# 3. content_quality.py tests
# ---------------------------------------------------------------------------


class TestExclusions:
    """Tests for is_excluded_title and is_excluded_url."""

    @pytest.mark.parametrize("title", ["404", "Page Not Found", "ERROR occurred", "Coming Soon!"])
    def test_excluded_titles_case_insensitive(self, title: str) -> None:
        assert is_excluded_title(title) is True

    def test_missing_title_excluded(self) -> None:
        assert is_excluded_title(None) is True
        assert is_excluded_title("") is True

    def test_regular_title_allowed(self) -> None:
        assert is_excluded_title("Understanding obesity as a disease") is False

    def test_title_type_error(self) -> None:
        with pytest.raises(TypeError):
            is_excluded_title(404)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/404",
            "https://example.com/WP-ADMIN/edit",
            "https://example.com/api/v1/pages",
            "https://example.com/brochure.PDF",
            "https://example.com/" + "a" * 600,
        ],
    )
    def test_excluded_urls(self, url: str) -> None:
        assert is_excluded_url(url) is True

    def test_regular_url_allowed(self) -> None:
        assert is_excluded_url("https://www.ueber-gewicht.de/behandlung") is False

    def test_missing_url_excluded(self) -> None:
        assert is_excluded_url(None) is True

    def test_custom_rules(self) -> None:
        rules = QualityRules(excluded_url_patterns=("/private",))
        assert is_excluded_url("https://example.com/private/x", rules) is True
        assert is_excluded_url("https://example.com/admin", rules) is False


class TestMeetsQualityThreshold:
    def test_good_page(self, valid_page: dict) -> None:
        assert meets_quality_threshold(valid_page) is True

    def test_short_title(self, valid_page: dict) -> None:
        valid_page["title"] = "Short"
        assert meets_quality_threshold(valid_page) is False

    def test_long_title(self, valid_page: dict) -> None:
        valid_page["title"] = "T" * 201
        assert meets_quality_threshold(valid_page) is False

    def test_low_word_count(self, valid_page: dict) -> None:
        valid_page["word_count"] = 99
        assert meets_quality_threshold(valid_page) is False

    def test_missing_word_count_not_rejected(self, valid_page: dict) -> None:
        del valid_page["word_count"]
        assert meets_quality_threshold(valid_page) is True

    def test_placeholder_content(self, valid_page: dict) -> None:
        valid_page["text_content"] = "Lorem ipsum dolor sit amet " + make_prose(200)
        assert meets_quality_threshold(valid_page) is False

    def test_word_count_type_error(self, valid_page: dict) -> None:
        valid_page["word_count"] = "450"
        with pytest.raises(TypeError):
            meets_quality_threshold(valid_page)


class TestValidateForStorage:
    """Tests for validate_for_storage, including the worked examples."""

    def test_complete_page_is_valid(self, valid_page: dict) -> None:
        result = validate_for_storage(valid_page)
        assert result.is_valid is True
        assert result.reasons == []

    def test_error_page_collects_every_reason(self) -> None:
        result = validate_for_storage({"title": "404", "url": "https://example.com/404"})
        assert result.is_valid is False
        assert result.reasons == [
            "URL matches exclusion pattern",
            "Title indicates low-quality content",
            "Content does not meet quality thresholds",
            "Missing market identifier",
            "Missing content summary",
        ]

    def test_missing_url_and_title(self) -> None:
        result = validate_for_storage({})
        assert "Missing URL" in result.reasons
        assert "Missing title" in result.reasons

    def test_summary_en_alone_is_enough(self, valid_page: dict) -> None:
        valid_page["summary"] = None
        assert validate_for_storage(valid_page).is_valid is True

    def test_missing_market(self, valid_page: dict) -> None:
        valid_page["market"] = ""
        assert validate_for_storage(valid_page).reasons == ["Missing market identifier"]

    def test_title_type_error(self) -> None:
        with pytest.raises(TypeError):
            validate_for_storage({"url": "https://example.com/a", "title": 5})


class TestValidateEventForTimeline:
    def test_system_events_always_valid(self) -> None:
        event = {"event_type": "pattern", "event_at": "2026-03-02T10:00:00+00:00", "title": "404"}
        assert validate_event_for_timeline(event) is True

    def test_excluded_title_rejected(self) -> None:
        event = {"event_type": "updated", "event_at": "2026-03-02", "title": "Error page"}
        assert validate_event_for_timeline(event) is False

    def test_excluded_url_rejected(self) -> None:
        event = {"event_type": "created", "event_at": "2026-03-02", "url": "https://x.com/login"}
        assert validate_event_for_timeline(event) is False

    def test_missing_required_fields(self) -> None:
        assert validate_event_for_timeline({"event_type": "updated"}) is False
        assert validate_event_for_timeline({"event_at": "2026-03-02"}) is False

    def test_untitled_event_allowed(self) -> None:
        assert validate_event_for_timeline({"event_type": "updated", "event_at": "x"}) is True


class TestCalculateQualityScore:
    def test_complete_page_scores_hundred(self, valid_page: dict) -> None:
        assert calculate_quality_score(valid_page) == 100

    def test_error_page_scores_zero(self) -> None:
        assert calculate_quality_score({"title": "404", "url": "https://example.com/404"}) == 0

    def test_thresholds_are_strict(self, valid_page: dict) -> None:
        valid_page["description"] = "x" * 20
        valid_page["word_count"] = 300
        assert calculate_quality_score(valid_page) == 70

    def test_non_priority_type(self, valid_page: dict) -> None:
        valid_page["content_type"] = "navigation"
        assert calculate_quality_score(valid_page) == 85

    def test_adding_fields_never_lowers_score(self) -> None:
        page: dict = {"title": "Living with obesity today"}
        previous = calculate_quality_score(page)
        for key, value in [
            ("description", "A description long enough to count for points"),
            ("publish_date", NOW),
            ("summary_en", "An English summary that runs comfortably past fifty characters."),
            ("word_count", 800),
            ("content_type", "article"),
        ]:
            page[key] = value
            score = calculate_quality_score(page)
            assert score >= previous
            previous = score
        assert previous == 100

    def test_default_rules_are_shared(self) -> None:
        assert DEFAULT_QUALITY_RULES.min_word_count == 100


# ---------------------------------------------------------------------------
# 4. event_ranking.py tests
# ---------------------------------------------------------------------------


class TestSortEventsByRelevance:
    def test_system_event_beats_impact_and_recency(self) -> None:
        alert = _event("alert", EventType.ALERT, minutes_ago=600, impact=ImpactLevel.LOW)
        update = _event("update", minutes_ago=1, impact=ImpactLevel.HIGH)
        ordered = sort_events_by_relevance([update, alert])
        assert [event.id for event in ordered] == ["alert", "update"]

    def test_impact_then_change_then_recency(self) -> None:
        low_new = _event("low-new", minutes_ago=1, impact=ImpactLevel.LOW)
        high_small = _event(
            "high-small", minutes_ago=30, impact=ImpactLevel.HIGH, change_percent=55
        )
        high_big = _event("high-big", minutes_ago=60, impact=ImpactLevel.HIGH, change_percent=90)
        medium_old = _event("medium-old", minutes_ago=90, impact=ImpactLevel.MEDIUM)
        medium_new = _event("medium-new", minutes_ago=10, impact=ImpactLevel.MEDIUM)
        ordered = sort_events_by_relevance([low_new, medium_old, high_small, medium_new, high_big])
        assert [event.id for event in ordered] == [
            "high-big",
            "high-small",
            "medium-new",
            "medium-old",
            "low-new",
        ]

    def test_missing_impact_sorts_last(self) -> None:
        unknown = _event("unknown", impact=None, minutes_ago=1)
        low = _event("low", impact=ImpactLevel.LOW, minutes_ago=100)
        assert [e.id for e in sort_events_by_relevance([unknown, low])] == ["low", "unknown"]

    def test_ties_keep_input_order(self) -> None:
        first = _event("first")
        second = _event("second")
        assert compare_events(first, second) == 0
        assert [e.id for e in sort_events_by_relevance([first, second])] == ["first", "second"]


class TestDetectCrossMarketPatterns:
    def test_two_markets_is_not_a_pattern(self) -> None:
        events = [
            _event("1", market="de", title="Alpha"),
            _event("2", market="fr", title="Beta"),
        ]
        assert detect_cross_market_patterns(events, now=NOW).has_pattern is False

    def test_three_recent_markets(self) -> None:
        events = [
            _event("1", market="fr", title="Alpha"),
            _event("2", market="de", title="Beta"),
            _event("3", market="it", title="Gamma"),
        ]
        result = detect_cross_market_patterns(events, now=NOW)
        assert result.has_pattern is True
        assert result.pattern_type == "simultaneous_update"
        assert result.affected_markets == ["de", "fr", "it"]
        assert result.confidence == 0.6

    def test_confidence_capped(self) -> None:
        events = [_event(str(i), market=f"m{i}") for i in range(6)]
        assert detect_cross_market_patterns(events, now=NOW).confidence == 0.9

    def test_old_events_do_not_count_as_simultaneous(self) -> None:
        events = [
            _event("1", market="de", minutes_ago=120, title="Alpha"),
            _event("2", market="fr", minutes_ago=120, title="Beta"),
            _event("3", market="it", minutes_ago=120, title="Gamma"),
        ]
        assert detect_cross_market_patterns(events, now=NOW).has_pattern is False

    def test_similar_content_across_markets(self) -> None:
        title = "New weight management guide launched"
        events = [
            _event("1", market="de", minutes_ago=300, title=title),
            _event("2", market="fr", minutes_ago=300, title=title),
            _event("3", market="it", minutes_ago=300, title=title),
        ]
        result = detect_cross_market_patterns(events, now=NOW)
        assert result.pattern_type == "similar_content"
        assert result.confidence == 0.75
        assert result.affected_markets == ["de", "fr", "it"]


class TestGroupingAndSimilarity:
    def test_group_keys(self) -> None:
        groups = group_similar_events(
            [_event("1"), _event("2"), _event("3", EventType.CREATED, market="fr")]
        )
        assert sorted(groups) == ["de-updated", "fr-created"]
        assert len(groups["de-updated"]) == 2

    def test_identical_titles(self) -> None:
        assert calculate_title_similarity("BMI tool", "bmi TOOL") == 1.0

    def test_partial_overlap(self) -> None:
        assert calculate_title_similarity("a b c d", "a b x y") == 0.5

    def test_missing_title(self) -> None:
        assert calculate_title_similarity(None, "a") == 0.0


# ---------------------------------------------------------------------------
# 5. categorization.py tests
# ---------------------------------------------------------------------------


class TestCategorizeByKeywords:
    def test_most_hits_wins(self) -> None:
        result = categorize_by_keywords(
            "Wegovy treatment and medication, sometimes surgery",
            "Options",
            "https://example.com/behandlung",
        )
        assert result.category == "Treating Obesity"
        assert result.confidence == 0.9
        assert set(result.keywords) == {"wegovy", "treatment", "medication", "surgery"}

    def test_bmi_override(self) -> None:
        result = categorize_by_keywords(
            "Use our tool", "Check your weight", "https://example.com/tools/bmi-calculator"
        )
        assert result.category == "BMI"
        assert result.confidence == 0.95
        assert result.content_type == "tool"

    def test_default_category(self) -> None:
        result = categorize_by_keywords("plain words only", "Page", "https://example.com/p")
        assert result.category == DEFAULT_CATEGORY
        assert result.confidence == 0.5


class TestDetectContentType:
    @pytest.mark.parametrize(
        ("url", "content", "expected"),
        [
            ("https://example.com/blog/post", "", "article"),
            ("https://example.com/faq", "", "faq"),
            ("https://example.com/contact", "", "form"),
            ("https://example.com/p", "watch our clip", "video"),
            ("https://example.com/", "short", "homepage"),
            ("https://example.com/p", make_prose(501), "article"),
            ("https://example.com/p", "short", "navigation"),
        ],
    )
    def test_detection(self, url: str, content: str, expected: str) -> None:
        assert detect_content_type(url, content) == expected


class TestSignalsAndTags:
    def test_html_signals(self) -> None:
        html = '<iframe src="https://www.youtube.com/embed/x"></iframe><form></form>'
        signals = extract_signals("plain text", "https://example.com/p", html)
        assert signals.has_video is True
        assert signals.has_form is True
        assert signals.has_calculator is False
        assert signals.reading_time == 1

    def test_text_signals(self) -> None:
        signals = extract_signals("Calculate it yourself [1]", "https://example.com/p")
        assert signals.has_calculator is True
        assert signals.has_references is True

    def test_empty_content_reading_time(self) -> None:
        assert extract_signals("", "https://example.com/p").reading_time is None

    def test_tags(self) -> None:
        tags = extract_tags(
            "We discuss Wegovy and Ozempic",
            "https://example.com/blog/post",
            "obesity, weight, obesity",
        )
        assert tags == ["obesity", "weight", "wegovy", "ozempic", "article", "blog"]


# ---------------------------------------------------------------------------
# 6. market_health.py tests
# ---------------------------------------------------------------------------


class TestMarketHealth:
    def test_weighted_score(self) -> None:
        health = calculate_market_health(
            MarketActivity(
                market="de",
                total_pages=50,
                recently_modified_pages=25,
                events_last_7_days=5,
                events_previous_7_days=2,
            )
        )
        assert health.content_freshness == 50
        assert health.content_coverage == 100
        assert health.update_frequency == 50
        assert health.overall_score == 65
        assert health.trend == HealthTrend.UP
        assert health.alerts == []

    def test_no_pages(self) -> None:
        health = calculate_market_health(MarketActivity("fr", 0, 0, 0, 0))
        assert health.overall_score == 0
        assert health.alerts == ["No pages crawled yet"]

    def test_stale_market_alerts(self) -> None:
        health = calculate_market_health(MarketActivity("it", 5, 0, 0, 4))
        assert health.trend == HealthTrend.DOWN
        assert health.alerts == [
            "Stale content - needs refresh",
            "Low page coverage",
            "Infrequent updates",
            "Very few pages crawled",
        ]

    def test_stable_trend(self) -> None:
        assert calculate_market_health(MarketActivity("uk", 10, 5, 10, 10)).trend == "stable"

    def test_summary_bands(self) -> None:
        scores = [
            calculate_market_health(MarketActivity("a", 50, 50, 10, 10)),
            calculate_market_health(MarketActivity("b", 50, 25, 5, 5)),
            calculate_market_health(MarketActivity("c", 0, 0, 0, 0)),
        ]
        assert summarize_health(scores) == {
            "total": 3,
            "healthy": 1,
            "warning": 1,
            "critical": 1,
        }


# ---------------------------------------------------------------------------
# 7. rising_score.py tests
# ---------------------------------------------------------------------------


class TestRisingScore:
    def test_formula(self) -> None:
        assert calculate_rising_score(50, 1000) == pytest.approx(50 * math.log(1001))

    def test_zero_volume(self) -> None:
        assert calculate_rising_score(500, 0) == 0

    def test_flat_and_shrinking_keywords_score_zero(self) -> None:
        assert calculate_rising_score(0, 1000) == 0
        assert calculate_rising_score(-200, 1000) == 0

    def test_growth_dominates_volume(self) -> None:
        assert calculate_rising_score(200, 100) > calculate_rising_score(20, 10000)

    def test_negative_volume_rejected(self) -> None:
        with pytest.raises(ValueError, match="volume"):
            calculate_rising_score(10, -1)

    def test_ranking(self) -> None:
        ranked = rank_rising_keywords(
            [
                {"keyword": "slow", "growth_pct": 0, "volume": 10},
                {"keyword": "fast", "growth_pct": 300, "volume": 100},
            ]
        )
        assert [row["keyword"] for row in ranked] == ["fast", "slow"]
        assert "rising_score" in ranked[0]
