"""Application configuration model using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from src.domains.activity.core.content_quality import (
    CONTENT_INDICATORS,
    EXCLUDED_TITLE_PATTERNS,
    EXCLUDED_URL_PATTERNS,
    NON_PAGE_SUFFIXES,
    PRIORITY_CONTENT_TYPES,
    QualityRules,
)

PatternList = Annotated[list[str], NoDecode]


class Config(BaseSettings):
    """Application configuration loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    firecrawl_api_key: str | None = None
    anthropic_api_key: str | None = None
    llm_model: str = "claude-haiku-4-5-20251001"
    llm_enrichment_enabled: bool = False
    database_path: str = "data/activity.db"
    log_level: str = "INFO"
    max_retry_attempts: int = 3

    quality_min_word_count: int = 100
    quality_min_title_length: int = 10
    quality_max_title_length: int = 200
    quality_min_description_length: int = 20
    quality_max_url_length: int = 500
    quality_excluded_title_patterns: PatternList = list(EXCLUDED_TITLE_PATTERNS)
    quality_excluded_url_patterns: PatternList = list(EXCLUDED_URL_PATTERNS)
    quality_content_indicators: PatternList = list(CONTENT_INDICATORS)
    quality_non_page_suffixes: PatternList = list(NON_PAGE_SUFFIXES)
    quality_priority_content_types: PatternList = list(PRIORITY_CONTENT_TYPES)

    @field_validator("firecrawl_api_key", "anthropic_api_key")
    @classmethod
    def validate_api_key(cls, value: str | None) -> str | None:
        """API keys are optional but must not be blank when given."""
        if value is not None and not value.strip():
            msg = "API keys must not be empty when set"
            raise ValueError(msg)
        return value

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Ensure parent directory exists, creating it if necessary."""
        if value != ":memory:":
            Path(value).parent.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value

    @field_validator("max_retry_attempts")
    @classmethod
    def validate_max_retry_attempts(cls, value: int) -> int:
        """Max retry attempts must be between 1 and 5."""
        if value < 1 or value > 5:
            msg = "max_retry_attempts must be between 1 and 5"
            raise ValueError(msg)
        return value

    @field_validator(
        "quality_min_word_count",
        "quality_min_title_length",
        "quality_max_title_length",
        "quality_min_description_length",
        "quality_max_url_length",
    )
    @classmethod
    def validate_threshold(cls, value: int) -> int:
        """Quality thresholds must not be negative."""
        if value < 0:
            msg = "quality thresholds must be >= 0"
            raise ValueError(msg)
        return value

    @field_validator(
        "quality_excluded_title_patterns",
        "quality_excluded_url_patterns",
        "quality_content_indicators",
        "quality_non_page_suffixes",
        "quality_priority_content_types",
        mode="before",
    )
    @classmethod
    def split_pattern_list(cls, value: object) -> object:
        """Accept comma-separated strings from the environment."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def quality_rules(self) -> QualityRules:
        """Build the quality rules used by validation and scoring."""
        return QualityRules(
            excluded_title_patterns=tuple(self.quality_excluded_title_patterns),
            excluded_url_patterns=tuple(self.quality_excluded_url_patterns),
            content_indicators=tuple(self.quality_content_indicators),
            non_page_suffixes=tuple(self.quality_non_page_suffixes),
            priority_content_types=tuple(self.quality_priority_content_types),
            min_word_count=self.quality_min_word_count,
            min_title_length=self.quality_min_title_length,
            max_title_length=self.quality_max_title_length,
            min_description_length=self.quality_min_description_length,
            max_url_length=self.quality_max_url_length,
        )
