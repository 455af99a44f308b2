"""Content fingerprinting for change detection."""

from __future__ import annotations

import hashlib

from src.domains.activity.core.text_utils import require_text


def compute_fingerprint(text: str | None) -> str:
    """Compute SHA-256 hex digest of page text.

    None is hashed as the empty string. Returns lowercase 64-character hex string.
    """
    content = require_text(text, "text")
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_words(text: str | None) -> int:
    """Count whitespace-delimited tokens in text."""
    return len(require_text(text, "text").split())
