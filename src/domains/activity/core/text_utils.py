"""Input guards shared by the activity core."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def require_text(value: object, name: str) -> str:
    """Return value as a string, treating None as empty. Rejects non-strings."""
    if value is None:
        return ""
    if not isinstance(value, str):
        msg = f"{name} must be a string or None, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def optional_text(record: Mapping[str, Any], key: str) -> str | None:
    """Read an optional string field from a page or event mapping."""
    value = record.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{key} must be a string or None, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def optional_count(record: Mapping[str, Any], key: str) -> int | None:
    """Read an optional integer field. Booleans are rejected."""
    value = record.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{key} must be an integer or None, got {type(value).__name__}"
        raise TypeError(msg)
    return value
