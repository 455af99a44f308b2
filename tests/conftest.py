"""Shared test fixtures for the Market Activity Monitor."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from src.domains.activity.repositories.content_page_repository import ContentPageRepository
from src.domains.activity.repositories.page_event_repository import PageEventRepository
from src.services.database import Database

if TYPE_CHECKING:
    from pathlib import Path

PROSE_SENTENCE = (
    "Obesity is a chronic disease that affects how the body regulates weight and"
    " talking with a healthcare provider helps people understand their options."
)


def make_prose(word_count: int, seed: str = "") -> str:
    """Build prose of exactly ``word_count`` words, optionally prefixed by ``seed`` words."""
    words = seed.split()
    base = PROSE_SENTENCE.split()
    while len(words) < word_count:
        words.extend(base)
    return " ".join(words[:word_count])


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Drop logging configuration applied by CLI runs between tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> str:
    """Provide a temporary database file path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def db(tmp_db_path: str) -> Database:
    """Provide an initialized temporary database."""
    database = Database(db_path=tmp_db_path)
    database.init_db()
    yield database
    database.close()


@pytest.fixture
def page_repo(db: Database) -> ContentPageRepository:
    return ContentPageRepository(db)


@pytest.fixture
def event_repo(db: Database) -> PageEventRepository:
    return PageEventRepository(db)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


@pytest.fixture
def valid_page() -> dict[str, Any]:
    """A page that passes every storage rule and scores 100."""
    return {
        "title": "BMI Calculator",
        "url": "https://www.ueber-gewicht.de/bmi-calculator",
        "market": "de",
        "language": "de",
        "text_content": make_prose(450),
        "word_count": 450,
        "description": "Calculate your BMI and learn what it means for you",
        "publish_date": datetime(2026, 1, 15, tzinfo=UTC),
        "summary": "Ein Rechner fuer den Body-Mass-Index mit Erklaerungen zu den Ergebnissen.",
        "summary_en": (
            "A body mass index calculator with guidance on what the result means for health."
        ),
        "content_type": "resource",
    }


@pytest.fixture
def raw_page() -> dict[str, Any]:
    """A raw crawled page as produced by the transformers (no enrichment yet)."""
    return {
        "url": "https://www.ueber-gewicht.de/behandlung/ratgeber",
        "domain": "ueber-gewicht.de",
        "path": "/behandlung/ratgeber",
        "market": "de",
        "language": "de",
        "title": "Treatment options for obesity",
        "description": "An overview of treatment options including medication and surgery.",
        "text_content": make_prose(320, "Wegovy treatment medication surgery"),
        "html": None,
        "keywords": "obesity, treatment",
        "publish_date": None,
    }
