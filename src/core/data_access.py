"""Pure helpers for mapping between SQLite rows and page/event dicts."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.domains.activity.core.content_quality import QualityRules

PAGE_JSON_LIST_FIELDS = ("tags",)
PAGE_JSON_DICT_FIELDS = ("signals",)


def row_to_dict(row: Any) -> dict[str, Any]:
    """Convert a sqlite3.Row to a dictionary."""
    if row is None:
        return {}
    return dict(row)


def serialize_json_field(
    value: list[Any] | dict[str, Any] | None,
) -> str | None:
    """Serialize a list or dict to JSON string for SQLite storage."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def deserialize_json_field(
    value: str | None,
    default: list[Any] | dict[str, Any] | None = None,
) -> list[Any] | dict[str, Any]:
    """Deserialize a JSON column, falling back to ``default`` (an empty list)."""
    fallback: list[Any] | dict[str, Any] = [] if default is None else default
    if value is None:
        return fallback
    try:
        result = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return fallback
    if isinstance(result, type(fallback)):
        return result
    return fallback


def page_row_to_dict(row: Any) -> dict[str, Any]:
    """Map a content_pages row to a dict with JSON columns decoded."""
    page = row_to_dict(row)
    if not page:
        return page
    for key in PAGE_JSON_LIST_FIELDS:
        page[key] = deserialize_json_field(page.get(key), [])
    for key in PAGE_JSON_DICT_FIELDS:
        page[key] = deserialize_json_field(page.get(key), {})
    return page


def format_datetime(dt: datetime | None) -> str | None:
    """Format datetime to ISO 8601 UTC string for SQLite storage.

    All stored timestamps are UTC so that string comparison orders them.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    """Parse ISO 8601 string from SQLite to an aware datetime."""
    if value is None:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _like_contains(pattern: str) -> str:
    escaped = pattern.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_quality_filter_clause(rules: QualityRules) -> tuple[list[str], list[Any]]:
    """SQL conditions that drop low-quality events before they reach the timeline.

    Mirrors is_excluded_title/is_excluded_url and the word-count threshold
    over page_events (e) left-joined with content_pages (p).
    """
    clauses = ["e.title IS NOT NULL", "e.url IS NOT NULL"]
    params: list[Any] = []
    for pattern in rules.excluded_title_patterns:
        clauses.append("LOWER(e.title) NOT LIKE ? ESCAPE '\\'")
        params.append(_like_contains(pattern))
    for pattern in rules.excluded_url_patterns:
        clauses.append("LOWER(e.url) NOT LIKE ? ESCAPE '\\'")
        params.append(_like_contains(pattern))
    clauses.append("(p.word_count IS NULL OR p.word_count >= ?)")
    params.append(rules.min_word_count)
    return clauses, params


def build_event_filters(
    since: str | None = None,
    markets: list[str] | None = None,
    event_types: list[str] | None = None,
    search: str | None = None,
    min_change: int = 0,
    quality_rules: QualityRules | None = None,
) -> tuple[str, list[Any]]:
    """Build a WHERE clause over page_events (e) left-joined with content_pages (p)."""
    clauses: list[str] = []
    params: list[Any] = []
    if quality_rules is not None:
        clauses, params = build_quality_filter_clause(quality_rules)
    if since is not None:
        clauses.append("e.event_at >= ?")
        params.append(since)
    if markets:
        clauses.append(f"e.market IN ({', '.join('?' for _ in markets)})")
        params.extend(markets)
    if event_types:
        clauses.append(f"e.event_type IN ({', '.join('?' for _ in event_types)})")
        params.extend(event_types)
    if search:
        like = _like_contains(search)
        clauses.append(
            "(LOWER(e.title) LIKE ? ESCAPE '\\' OR LOWER(e.summary) LIKE ? ESCAPE '\\'"
            " OR LOWER(e.url) LIKE ? ESCAPE '\\')"
        )
        params.extend([like, like, like])
    if min_change > 0:
        clauses.append("e.change_pct >= ?")
        params.append(min_change)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params
