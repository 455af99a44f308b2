"""CLI command implementations for the Market Activity Monitor."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from src.models.config import Config
from src.services.database import Database
from src.utils.logger import configure_logging

if TYPE_CHECKING:
    from src.domains.activity.services.page_store import PageStore


def _get_config() -> Config:
    """Load configuration from .env file."""
    return Config()


def _get_db(config: Config) -> Database:
    """Initialize database with schema."""
    db = Database(db_path=config.database_path)
    db.init_db()
    return db


def _print_summary(title: str, stats: dict[str, Any]) -> None:
    """Print a formatted summary of batch operation results."""
    click.echo(f"\n[SUCCESS] {title}")
    for key, value in stats.items():
        if key == "errors" and isinstance(value, list):
            if value:
                click.echo(f"  Errors ({len(value)}):")
                for error in value[:10]:
                    click.echo(f"    - {error}")
                if len(value) > 10:
                    click.echo(f"    ... and {len(value) - 10} more")
        else:
            click.echo(f"  {key}: {value}")


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


def _split_option(value: str | None) -> list[str]:
    """Split a comma-separated option value."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _build_page_store(config: Config, db: Database, use_llm: bool = True) -> PageStore:
    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository
    from src.domains.activity.services.page_enricher import PageEnricher
    from src.domains.activity.services.page_store import PageStore

    llm_client = None
    if use_llm and config.llm_enrichment_enabled and config.anthropic_api_key:
        from src.services.llm_client import LLMClient

        llm_client = LLMClient(config.anthropic_api_key, config.llm_model)

    return PageStore(
        db,
        ContentPageRepository(db),
        PageEventRepository(db),
        enricher=PageEnricher(llm_client),
        quality_rules=config.quality_rules(),
    )


# --- Capture & import ---


@click.command()
@click.argument("urls", nargs=-1)
@click.option(
    "--urls-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Text file with one URL per line",
)
def capture_pages(urls: tuple[str, ...], urls_file: str | None) -> None:
    """Scrape the given page URLs and store changes."""
    config = _get_config()
    configure_logging(config.log_level)

    if not config.firecrawl_api_key:
        click.echo("[ERROR] FIRECRAWL_API_KEY not set in .env file.")
        return

    from src.utils.validators import normalize_url

    targets = list(urls)
    if urls_file:
        with open(urls_file, encoding="utf-8") as handle:
            targets.extend(
                line.strip() for line in handle if line.strip() and not line.startswith("#")
            )

    seen: set[str] = set()
    unique_targets = []
    for url in targets:
        key = normalize_url(url)
        if key not in seen:
            seen.add(key)
            unique_targets.append(url)

    if not unique_targets:
        click.echo("[ERROR] No URLs given.")
        return

    db = _get_db(config)

    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.services.firecrawl_client import FirecrawlClient
    from src.services.page_capture_manager import PageCaptureManager

    firecrawl = FirecrawlClient(config.firecrawl_api_key, max_attempts=config.max_retry_attempts)
    manager = PageCaptureManager(
        _build_page_store(config, db), ContentPageRepository(db), scraper=firecrawl
    )

    click.echo(f"[INFO] Capturing {len(unique_targets)} pages...")
    result = manager.capture_pages(unique_targets)
    _print_summary("Page capture complete", result)
    db.close()


@click.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--no-llm", is_flag=True, help="Skip LLM enrichment even when enabled")
def import_pages(json_file: str, no_llm: bool) -> None:
    """Import pages from a JSON file (a list of page objects with at least a url)."""
    config = _get_config()
    configure_logging(config.log_level)

    with open(json_file, encoding="utf-8") as handle:
        records = json.load(handle)
    if isinstance(records, dict):
        records = records.get("pages", [])
    if not isinstance(records, list):
        click.echo("[ERROR] Expected a JSON list of page objects.")
        return

    db = _get_db(config)

    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.services.page_capture_manager import PageCaptureManager

    manager = PageCaptureManager(
        _build_page_store(config, db, use_llm=not no_llm), ContentPageRepository(db)
    )

    click.echo(f"[INFO] Importing {len(records)} pages...")
    result = manager.import_pages(records)
    _print_summary("Page import complete", result)
    db.close()


@click.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
def validate_page(json_file: str) -> None:
    """Check a page JSON object against the storage rules without storing it."""
    config = _get_config()
    configure_logging(config.log_level)

    from src.domains.activity.core.content_quality import (
        calculate_quality_score,
        validate_for_storage,
    )
    from src.domains.activity.core.fingerprint import count_words

    with open(json_file, encoding="utf-8") as handle:
        page = json.load(handle)
    if not isinstance(page, dict):
        click.echo("[ERROR] Expected a JSON object.")
        return
    if "word_count" not in page and isinstance(page.get("text_content"), str):
        page["word_count"] = count_words(page["text_content"])

    rules = config.quality_rules()
    result = validate_for_storage(page, rules)
    if result.is_valid:
        click.echo("[SUCCESS] Page is valid for storage")
    else:
        click.echo("[REJECTED] Page fails validation:")
        for reason in result.reasons:
            click.echo(f"  - {reason}")
    click.echo(f"  quality_score: {calculate_quality_score(page, rules)}")


# --- Reports ---


@click.command()
@click.option(
    "--time-range",
    default="7d",
    type=click.Choice(["24h", "7d", "30d", "90d"]),
    help="How far back to look",
)
@click.option("--markets", default=None, help="Comma-separated market codes")
@click.option("--event-types", default=None, help="Comma-separated event types")
@click.option("--search", default=None, help="Match title, summary or URL")
@click.option("--min-change", default=0, type=click.IntRange(0, 100), help="Minimum change %")
@click.option("--limit", default=100, type=int, help="Maximum events to read")
@click.option(
    "--output-format",
    default="summary",
    type=click.Choice(["summary", "json"]),
    help="Output format",
)
def show_timeline(
    time_range: str,
    markets: str | None,
    event_types: str | None,
    search: str | None,
    min_change: int,
    limit: int,
    output_format: str,
) -> None:
    """Show the relevance-ordered activity timeline."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from src.core.markets import market_display_name
    from src.domains.activity.repositories.page_event_repository import PageEventRepository
    from src.domains.activity.services.timeline_builder import TimelineBuilder

    builder = TimelineBuilder(PageEventRepository(db), config.quality_rules())
    timeline = builder.build(
        time_range=time_range,
        markets=_split_option(markets),
        event_types=_split_option(event_types),
        search=search,
        min_change=min_change,
        limit=limit,
    )
    db.close()

    if output_format == "json":
        _echo_json(
            {
                "events": [event.model_dump(mode="json") for event in timeline.events],
                "total": timeline.total,
                "time_range": timeline.time_range,
                "filters": timeline.filters,
                "pattern": {
                    "has_pattern": timeline.pattern.has_pattern,
                    "pattern_type": timeline.pattern.pattern_type,
                    "affected_markets": timeline.pattern.affected_markets,
                    "confidence": timeline.pattern.confidence,
                },
            }
        )
        return

    click.echo(f"\nTimeline ({time_range}): {timeline.total} events")
    if timeline.pattern.has_pattern:
        click.echo(
            f"  Pattern: {timeline.pattern.pattern_type} across"
            f" {', '.join(timeline.pattern.affected_markets)}"
            f" (confidence {timeline.pattern.confidence})"
        )
    for event in timeline.events:
        change = f" {event.change_percent:.0f}%" if event.change_percent is not None else ""
        impact = event.impact or "-"
        click.echo(
            f"  [{event.type}] {event.timestamp:%Y-%m-%d %H:%M}"
            f" {market_display_name(event.market)} ({impact}{change}) {event.title}"
        )
        if event.url:
            click.echo(f"      {event.url}")


@click.command()
@click.option("--output-format", default="summary", type=click.Choice(["summary", "json"]))
def show_stats(output_format: str) -> None:
    """Show page and event statistics."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from datetime import UTC, datetime, timedelta

    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository

    page_repo = ContentPageRepository(db)
    event_repo = PageEventRepository(db)
    week_ago = datetime.now(UTC) - timedelta(days=7)
    stats = {
        "total_pages": page_repo.count_pages(),
        "average_quality_score": page_repo.average_quality_score(),
        "total_events": event_repo.count_events(),
        "events_last_7_days": event_repo.count_events(since=week_ago),
        "events_by_type": event_repo.count_by_type(),
        "pages_by_market": page_repo.count_by_column("market"),
        "pages_by_category": page_repo.count_by_column("category"),
        "pages_by_content_type": page_repo.count_by_column("content_type"),
        "recent_errors": len(page_repo.get_recent_errors()),
    }
    db.close()

    if output_format == "json":
        _echo_json(stats)
    else:
        _print_summary("Activity statistics", stats)


@click.command()
@click.option("--all-markets", is_flag=True, help="Include registered markets with no pages")
@click.option("--output-format", default="summary", type=click.Choice(["summary", "json"]))
def market_health(all_markets: bool, output_format: str) -> None:
    """Score each market on freshness, coverage and update frequency."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from dataclasses import asdict

    from src.core.markets import market_display_name
    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository
    from src.domains.activity.services.market_health_analyzer import MarketHealthAnalyzer

    analyzer = MarketHealthAnalyzer(ContentPageRepository(db), PageEventRepository(db))
    scores, summary = analyzer.analyze(include_empty=all_markets)
    db.close()

    if output_format == "json":
        _echo_json({"markets": [asdict(score) for score in scores], "summary": summary})
        return

    click.echo(
        f"\nMarket health: {summary['healthy']} healthy, {summary['warning']} warning,"
        f" {summary['critical']} critical ({summary['total']} markets)"
    )
    for score in scores:
        click.echo(
            f"  {market_display_name(score.market):<24} {score.overall_score:>3}"
            f"  fresh {score.content_freshness:>3}  coverage {score.content_coverage:>3}"
            f"  freq {score.update_frequency:>3}  trend {score.trend}"
        )
        for alert in score.alerts:
            click.echo(f"      ! {alert}")


@click.command()
@click.argument("url")
def show_page(url: str) -> None:
    """Show a stored page and its event history."""
    config = _get_config()
    configure_logging(config.log_level)
    db = _get_db(config)

    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository

    page = ContentPageRepository(db).get_page_by_url(url)
    if page is None:
        click.echo(f"[ERROR] No stored page for {url}")
        db.close()
        return
    events = PageEventRepository(db).get_events_for_page(page["id"])
    db.close()

    click.echo(f"\n{page.get('title') or '(untitled)'}")
    for key in (
        "url",
        "market",
        "language",
        "category",
        "content_type",
        "word_count",
        "quality_score",
        "change_pct",
        "last_crawled_at",
        "last_modified_at",
    ):
        click.echo(f"  {key}: {page.get(key)}")
    click.echo(f"  tags: {', '.join(page.get('tags') or []) or '-'}")
    click.echo(f"  summary_en: {page.get('summary_en') or '-'}")
    click.echo(f"  Events ({len(events)}):")
    for event in events:
        change = f" {event['change_pct']}%" if event.get("change_pct") is not None else ""
        click.echo(f"    - {event['event_at']} {event['event_type']}{change}")


@click.command()
@click.option("--limit", default=50, type=int, help="Pages to process")
def backfill_summaries(limit: int) -> None:
    """Fill missing English summaries for stored pages using the LLM."""
    config = _get_config()
    configure_logging(config.log_level)

    if not config.anthropic_api_key:
        click.echo("[ERROR] ANTHROPIC_API_KEY not set in .env file.")
        return

    db = _get_db(config)

    from src.domains.activity.repositories.content_page_repository import (
        ContentPageRepository,
    )
    from src.domains.activity.repositories.page_event_repository import PageEventRepository
    from src.domains.activity.services.page_enricher import PageEnricher
    from src.domains.activity.services.page_store import PageStore
    from src.services.llm_client import LLMClient
    from src.utils.progress import ProgressTracker

    page_repo = ContentPageRepository(db)
    store = PageStore(
        db,
        page_repo,
        PageEventRepository(db),
        enricher=PageEnricher(LLMClient(config.anthropic_api_key, config.llm_model)),
        quality_rules=config.quality_rules(),
    )

    pages = page_repo.get_pages_missing_summary_en(limit=limit)
    tracker = ProgressTracker(total=len(pages), run="backfill")
    click.echo(f"[INFO] Backfilling summaries for {len(pages)} pages...")
    for page in pages:
        refreshed = store.refresh_enrichment(page["id"])
        if refreshed and refreshed.get("summary_en"):
            tracker.record_outcome("summarized")
        else:
            tracker.record_outcome("still_missing")
        tracker.log_progress(every_n=10)
    _print_summary("Summary backfill complete", tracker.summary())
    db.close()


@click.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", default=20, type=int, help="Keywords to show")
def rank_keywords(json_file: str, limit: int) -> None:
    """Rank search-trend keywords by rising score.

    Reads a JSON list of objects with keyword, growth_pct and volume.
    """
    config = _get_config()
    configure_logging(config.log_level)

    from src.domains.trends.core.rising_score import rank_rising_keywords

    with open(json_file, encoding="utf-8") as handle:
        rows = json.load(handle)
    try:
        ranked = rank_rising_keywords(rows)
    except (KeyError, TypeError, ValueError) as exc:
        click.echo(f"[ERROR] Invalid keyword data: {exc}")
        return

    click.echo(f"\nTop {min(limit, len(ranked))} rising keywords:")
    for row in ranked[:limit]:
        click.echo(
            f"  {row['rising_score']:7.2f}  {row.get('keyword', '?')}"
            f"  (growth {row['growth_pct']}%, volume {row['volume']})"
        )


@click.command()
def check_apis() -> None:
    """Check connectivity to Firecrawl and Anthropic."""
    config = _get_config()
    configure_logging(config.log_level)

    from src.utils.health_checks import check_api_status

    for name, status in check_api_status(config).items():
        click.echo(f"  {name}: {status}")
