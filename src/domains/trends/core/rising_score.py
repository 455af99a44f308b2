"""Rising score for search-trend keywords."""

from __future__ import annotations

import math
from typing import Any


def calculate_rising_score(growth_pct: float, volume: int) -> float:
    """Rising score = growth_pct x ln(volume + 1).

    Flat or shrinking keywords (growth_pct <= 0) score 0.
    """
    if volume < 0:
        msg = "volume must be >= 0"
        raise ValueError(msg)
    if growth_pct <= 0:
        return 0.0
    return growth_pct * math.log(volume + 1)


def rank_rising_keywords(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach rising_score to keyword rows and sort them highest first.

    Each row needs "growth_pct" and "volume".
    """
    scored = [
        {**row, "rising_score": calculate_rising_score(row["growth_pct"], row["volume"])}
        for row in rows
    ]
    return sorted(scored, key=lambda row: row["rising_score"], reverse=True)
