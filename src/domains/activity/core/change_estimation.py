"""Change magnitude estimation between two page text snapshots."""

from __future__ import annotations

import math
from enum import StrEnum

from src.domains.activity.core.text_utils import require_text


class ChangeImpact(StrEnum):
    HIGH = "high"  # change_pct > 50
    MEDIUM = "medium"  # change_pct 21-50
    LOW = "low"  # change_pct <= 20


HIGH_IMPACT_THRESHOLD = 50
MEDIUM_IMPACT_THRESHOLD = 20


def estimate_change_percentage(old_text: str | None, new_text: str | None) -> int:
    """Estimate how much page text changed, as an integer 0-100.

    Words are compared by set membership, not position: a token counts as added
    when it does not occur anywhere in the old text, and as removed when it does
    not occur anywhere in the new text. Reordered text therefore scores 0.

    One side empty and the other non-empty returns 100. Both empty returns 0.
    """
    old_content = require_text(old_text, "old_text")
    new_content = require_text(new_text, "new_text")

    if not old_content and not new_content:
        return 0
    if not old_content or not new_content:
        return 100

    old_words = old_content.split()
    new_words = new_content.split()
    old_vocabulary = set(old_words)
    new_vocabulary = set(new_words)

    added = sum(1 for word in new_words if word not in old_vocabulary)
    removed = sum(1 for word in old_words if word not in new_vocabulary)

    total_words = max(len(old_words), len(new_words), 1)
    # Halves round up: 12.5 -> 13, 0.5 -> 1
    change_pct = math.floor(100 * (added + removed) / total_words + 0.5)
    return max(0, min(100, change_pct))


def detect_page_change(
    old_hash: str | None,
    new_hash: str,
    old_text: str | None = None,
    new_text: str | None = None,
) -> tuple[bool, int]:
    """Detect whether a page changed and estimate the change percentage.

    Returns (has_changed, change_pct).
    If hashes match, returns (False, 0).
    If there is no previous hash, the page is new and returns (True, 0).
    """
    if old_hash is None:
        return True, 0
    if old_hash == new_hash:
        return False, 0
    return True, estimate_change_percentage(old_text, new_text)


def derive_impact(change_pct: int | float | None) -> ChangeImpact:
    """Map a change percentage onto a timeline impact level."""
    if change_pct is not None and change_pct > HIGH_IMPACT_THRESHOLD:
        return ChangeImpact.HIGH
    if change_pct is not None and change_pct > MEDIUM_IMPACT_THRESHOLD:
        return ChangeImpact.MEDIUM
    return ChangeImpact.LOW
