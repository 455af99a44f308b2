"""URL and fingerprint validation utilities."""

from __future__ import annotations

import re
from urllib.parse import urlparse

_SHA256_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def is_valid_url(url: str) -> bool:
    """Check if a string is a valid HTTP/HTTPS URL."""
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except ValueError:
        return False


def is_valid_sha256(value: str) -> bool:
    """Check if a string is a SHA-256 hex digest (64 lowercase hex chars)."""
    return bool(_SHA256_PATTERN.match(value))


def normalize_url(url: str) -> str:
    """Normalize a page URL for de-duplication.

    Lowercases scheme and host, drops the fragment and a trailing slash.
    The path and query keep their case since page URLs are case-sensitive.
    """
    parsed = urlparse(url.strip())
    netloc = parsed.netloc.lower()
    path = parsed.path.rstrip("/") or "/"
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{parsed.scheme.lower()}://{netloc}{path}{query}"


def extract_domain(url: str) -> str:
    """Extract the domain from a URL, without a leading www."""
    netloc = urlparse(url).netloc.lower()
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return netloc
