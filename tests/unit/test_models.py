"""Unit tests for pydantic models and the Config settings model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from src.models.config import Config
from src.models.content_page import ContentPage, PageSignals
from src.models.page_event import EventType, PageEvent
from src.models.processing_error import ProcessingError
from src.models.timeline_event import ImpactLevel, TimelineEvent

if TYPE_CHECKING:
    from pathlib import Path

HASH = "a" * 64
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# ContentPage / PageSignals
# ---------------------------------------------------------------------------


class TestContentPage:
    def test_minimal_page(self) -> None:
        page = ContentPage(url="https://www.ueber-gewicht.de/", change_hash=HASH)
        assert page.word_count == 0
        assert page.tags == []
        assert page.signals == PageSignals()
        assert page.last_crawled_at.tzinfo is not None

    def test_hash_lowercased(self) -> None:
        page = ContentPage(url="https://example.com/a", change_hash="ABCDEF" + "0" * 58)
        assert page.change_hash == "abcdef" + "0" * 58

    @pytest.mark.parametrize("bad_hash", ["abc", "g" * 64, "a" * 65])
    def test_invalid_hash(self, bad_hash: str) -> None:
        with pytest.raises(ValidationError, match="change_hash"):
            ContentPage(url="https://example.com/a", change_hash=bad_hash)

    @pytest.mark.parametrize("url", ["example.com/a", "ftp://example.com/a", ""])
    def test_invalid_url(self, url: str) -> None:
        with pytest.raises(ValidationError):
            ContentPage(url=url, change_hash=HASH)

    def test_negative_word_count(self) -> None:
        with pytest.raises(ValidationError, match="word_count"):
            ContentPage(url="https://example.com/a", change_hash=HASH, word_count=-1)

    @pytest.mark.parametrize("field", ["change_pct", "quality_score"])
    def test_percentage_bounds(self, field: str) -> None:
        with pytest.raises(ValidationError):
            ContentPage(url="https://example.com/a", change_hash=HASH, **{field: 101})

    def test_signals_from_dict(self) -> None:
        page = ContentPage(
            url="https://example.com/a",
            change_hash=HASH,
            signals={"has_video": True, "reading_time": 3},
        )
        assert page.signals.has_video is True
        assert page.signals.reading_time == 3

    def test_signals_reject_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            PageSignals(has_podcast=True)  # type: ignore[call-arg]

    def test_negative_reading_time(self) -> None:
        with pytest.raises(ValidationError, match="reading_time"):
            PageSignals(reading_time=-1)


# ---------------------------------------------------------------------------
# PageEvent / TimelineEvent
# ---------------------------------------------------------------------------


class TestPageEvent:
    def test_created_event(self) -> None:
        event = PageEvent(event_type="created", event_at=NOW, url="https://example.com/a")
        assert event.event_type == EventType.CREATED
        assert event.is_system_generated is False

    def test_system_generated(self) -> None:
        assert PageEvent(event_type=EventType.ALERT, event_at=NOW).is_system_generated is True

    def test_frozen(self) -> None:
        event = PageEvent(event_type="updated", event_at=NOW, change_pct=10)
        with pytest.raises(ValidationError):
            event.change_pct = 20  # type: ignore[misc]

    def test_change_pct_bounds(self) -> None:
        with pytest.raises(ValidationError, match="change_pct"):
            PageEvent(event_type="updated", event_at=NOW, change_pct=150)

    def test_unknown_event_type(self) -> None:
        with pytest.raises(ValidationError):
            PageEvent(event_type="deleted", event_at=NOW)


class TestTimelineEvent:
    def test_defaults(self) -> None:
        event = TimelineEvent(id="1", type="updated", timestamp=NOW)
        assert event.market == "unknown"
        assert event.tags == []
        assert event.related_count == 0

    def test_impact_values(self) -> None:
        event = TimelineEvent(id="1", type="pattern", timestamp=NOW, impact="high")
        assert event.impact == ImpactLevel.HIGH
        assert event.model_dump(mode="json")["impact"] == "high"


# ---------------------------------------------------------------------------
# ProcessingError
# ---------------------------------------------------------------------------


class TestProcessingError:
    def test_valid(self) -> None:
        error = ProcessingError(
            entity_type="page",
            url="https://example.com/a",
            error_type="ScrapeFailed",
            error_message="HTTP 500",
            occurred_at=NOW,
        )
        assert error.retry_count == 0
        assert error.entity_id is None

    @pytest.mark.parametrize("error_type", ["scrapeFailed", "Scrape_Failed", "", "A" * 101])
    def test_error_type_format(self, error_type: str) -> None:
        with pytest.raises(ValidationError):
            ProcessingError(
                entity_type="page",
                error_type=error_type,
                error_message="boom",
                occurred_at=NOW,
            )

    def test_message_length(self) -> None:
        with pytest.raises(ValidationError, match="error_message"):
            ProcessingError(
                entity_type="page",
                error_type="ScrapeFailed",
                error_message="x" * 5001,
                occurred_at=NOW,
            )

    def test_entity_type_literal(self) -> None:
        with pytest.raises(ValidationError):
            ProcessingError(
                entity_type="company",  # type: ignore[arg-type]
                error_type="ScrapeFailed",
                error_message="boom",
                occurred_at=NOW,
            )

    def test_invalid_url(self) -> None:
        with pytest.raises(ValidationError, match="url"):
            ProcessingError(
                entity_type="page",
                url="not a url",
                error_type="ScrapeFailed",
                error_message="boom",
                occurred_at=NOW,
            )

    def test_for_page_from_exception(self) -> None:
        error = ProcessingError.for_page("https://example.com/a", RuntimeError("x" * 6000))
        assert error.error_type == "RuntimeError"
        assert len(error.error_message) == 5000
        assert error.url == "https://example.com/a"
        assert error.occurred_at.tzinfo is not None

    def test_for_page_blank_message_and_bad_url(self) -> None:
        error = ProcessingError.for_page("page-without-scheme", "  ", "InvalidRecord")
        assert error.url is None
        assert error.error_message == "InvalidRecord"

    def test_strict_retry_count(self) -> None:
        with pytest.raises(ValidationError):
            ProcessingError(
                entity_type="page",
                error_type="ScrapeFailed",
                error_message="boom",
                retry_count="1",  # type: ignore[arg-type]
                occurred_at=NOW,
            )


# ---------------------------------------------------------------------------
# Config model tests
# ---------------------------------------------------------------------------


class TestConfigValidators:
    """Tests for Config field validators called directly."""

    def test_log_level_uppercased(self) -> None:
        assert Config.validate_log_level("debug") == "DEBUG"

    def test_log_level_invalid(self) -> None:
        with pytest.raises(ValueError, match="log_level"):
            Config.validate_log_level("TRACE")

    @pytest.mark.parametrize("value", [1, 3, 5])
    def test_retry_attempts_valid(self, value: int) -> None:
        assert Config.validate_max_retry_attempts(value) == value

    @pytest.mark.parametrize("value", [0, 6])
    def test_retry_attempts_invalid(self, value: int) -> None:
        with pytest.raises(ValueError, match="max_retry_attempts"):
            Config.validate_max_retry_attempts(value)

    def test_blank_api_key(self) -> None:
        with pytest.raises(ValueError, match="API keys"):
            Config.validate_api_key("   ")

    def test_missing_api_key_allowed(self) -> None:
        assert Config.validate_api_key(None) is None

    def test_negative_threshold(self) -> None:
        with pytest.raises(ValueError, match="thresholds"):
            Config.validate_threshold(-1)

    def test_split_pattern_list(self) -> None:
        assert Config.split_pattern_list("404, oops ,,") == ["404", "oops"]
        assert Config.split_pattern_list(["a"]) == ["a"]


class TestConfigFromEnvironment:
    def test_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FIRECRAWL_API_KEY", raising=False)
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "nested" / "activity.db"))
        config = Config(_env_file=None)
        assert config.firecrawl_api_key is None
        assert config.llm_enrichment_enabled is False
        assert (tmp_path / "nested").is_dir()
        assert config.quality_rules().min_word_count == 100

    def test_pattern_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "activity.db"))
        monkeypatch.setenv("QUALITY_EXCLUDED_URL_PATTERNS", "/private,/draft")
        monkeypatch.setenv("QUALITY_MIN_WORD_COUNT", "250")
        rules = Config(_env_file=None).quality_rules()
        assert rules.excluded_url_patterns == ("/private", "/draft")
        assert rules.min_word_count == 250
        assert "404" in rules.excluded_title_patterns

    def test_memory_database(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_PATH", ":memory:")
        assert Config(_env_file=None).database_path == ":memory:"
