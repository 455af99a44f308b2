"""CLI entry point for the Market Activity Monitor."""

from __future__ import annotations

import click

from src.cli.commands import (
    backfill_summaries,
    capture_pages,
    check_apis,
    import_pages,
    market_health,
    rank_keywords,
    show_page,
    show_stats,
    show_timeline,
    validate_page,
)


@click.group()
def cli() -> None:
    """Market Activity Monitor."""


cli.add_command(capture_pages)
cli.add_command(import_pages)
cli.add_command(validate_page)
cli.add_command(show_timeline)
cli.add_command(show_stats)
cli.add_command(market_health)
cli.add_command(show_page)
cli.add_command(backfill_summaries)
cli.add_command(rank_keywords)
cli.add_command(check_apis)
