"""Reachability checks for the scraping and enrichment APIs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests

from src.utils.logger import get_logger

if TYPE_CHECKING:
    from src.models.config import Config

logger = get_logger(__name__)

FIRECRAWL_HEALTH_URL = "https://api.firecrawl.dev/v1/health"
ANTHROPIC_MODELS_URL = "https://api.anthropic.com/v1/models"
ANTHROPIC_API_VERSION = "2023-06-01"


def _probe(
    service: str,
    url: str,
    headers: dict[str, str],
    timeout: int,
    params: dict[str, Any] | None = None,
) -> bool:
    try:
        response = requests.get(url, headers=headers, params=params, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("api_health_check_failed", service=service, error=str(exc))
        return False
    if response.status_code != 200:
        logger.warning(
            "api_health_check_rejected", service=service, status_code=response.status_code
        )
        return False
    return True


def check_firecrawl_health(api_key: str, timeout: int = 10) -> bool:
    """Check if Firecrawl API is reachable and authenticated."""
    return _probe(
        "firecrawl", FIRECRAWL_HEALTH_URL, {"Authorization": f"Bearer {api_key}"}, timeout
    )


def check_anthropic_health(api_key: str, timeout: int = 10) -> bool:
    """Check if the Anthropic API accepts the key by listing one model."""
    return _probe(
        "anthropic",
        ANTHROPIC_MODELS_URL,
        {"x-api-key": api_key, "anthropic-version": ANTHROPIC_API_VERSION},
        timeout,
        params={"limit": "1"},
    )


def check_api_status(config: Config) -> dict[str, str]:
    """Status per API: "not configured", "OK" or "FAILED"."""
    checks = {
        "Firecrawl": (config.firecrawl_api_key, check_firecrawl_health),
        "Anthropic": (config.anthropic_api_key, check_anthropic_health),
    }
    status: dict[str, str] = {}
    for name, (api_key, check) in checks.items():
        if not api_key:
            status[name] = "not configured"
        else:
            status[name] = "OK" if check(api_key) else "FAILED"
    return status
