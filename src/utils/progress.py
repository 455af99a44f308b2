"""Outcome counting and periodic progress logs for capture, import and backfill runs."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field

from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ProgressTracker:
    """Counts what happened to each URL of a run.

    Outcomes are labels such as "created", "updated", "unchanged" or
    "rejected". Failures keep a "<url>: <error>" line for the summary.
    """

    total: int
    run: str = "batch"
    outcomes: Counter[str] = field(default_factory=Counter)
    errors: list[str] = field(default_factory=list)
    started: float = field(default_factory=time.monotonic)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def processed(self) -> int:
        return sum(self.outcomes.values()) + self.failed

    def record_outcome(self, outcome: str) -> None:
        self.outcomes[outcome] += 1

    def record_failure(self, url: str | None, error: str) -> None:
        self.errors.append(f"{url or '(no url)'}: {error}")

    def eta_seconds(self) -> float | None:
        """Remaining time at the current pace; None before the first URL."""
        if self.processed == 0:
            return None
        pace = (time.monotonic() - self.started) / self.processed
        return max(0, self.total - self.processed) * pace

    def log_progress(self, every_n: int = 10) -> None:
        """Log every ``every_n`` URLs and once at the end."""
        done = self.processed
        if done == 0 or (done % every_n and done != self.total):
            return
        eta = self.eta_seconds()
        logger.info(
            f"{self.run}_progress",
            processed=done,
            total=self.total,
            failed=self.failed,
            eta=f"{eta:.0f}s" if eta is not None else None,
            **dict(self.outcomes),
        )

    def summary(self) -> dict[str, int | float | list[str]]:
        """Counts per outcome plus failures, duration and error lines."""
        stats: dict[str, int | float | list[str]] = {"processed": self.processed}
        stats.update(sorted(self.outcomes.items()))
        stats["failed"] = self.failed
        stats["duration_seconds"] = round(time.monotonic() - self.started, 2)
        stats["errors"] = list(self.errors)
        return stats
