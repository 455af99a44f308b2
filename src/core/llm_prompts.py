"""Prompt building and response parsing for LLM page analysis."""

from __future__ import annotations

import json
import re
from typing import Any

from src.domains.activity.core.categorization import CONTENT_CATEGORIES, CONTENT_TYPES

# Characters of page text sent to the model
MAX_CONTENT_CHARS = 3000

PAGE_ANALYSIS_SYSTEM_PROMPT = (
    "You are analyzing pages from patient-education websites about obesity"
    " and weight management.\n"
    "Summarize each page and classify it for a marketing activity monitor.\n\n"
    "Respond with a JSON object containing:\n"
    "- summary: 2-3 sentence summary in the page's original language\n"
    "- summary_en: 2-3 sentence summary in English\n"
    "- category: one of {categories}\n"
    "- content_type: one of {content_types}\n"
    "- confidence: float between 0.0 and 1.0"
)

PAGE_ANALYSIS_USER_TEMPLATE = (
    "Analyze this page.\n\n"
    "URL: {url}\n"
    "Title: {title}\n"
    "Language: {language}\n\n"
    "Content:\n{content}\n\n"
    "Focus on the key message and any actionable information."
    " Respond with JSON only."
)


def build_page_analysis_prompt(
    url: str,
    title: str | None,
    content: str,
    language: str | None,
) -> tuple[str, str]:
    """Build system and user prompts for page analysis.

    Returns (system_prompt, user_prompt).
    """
    system_prompt = PAGE_ANALYSIS_SYSTEM_PROMPT.format(
        categories=", ".join(f'"{name}"' for name in CONTENT_CATEGORIES),
        content_types=", ".join(f'"{name}"' for name in CONTENT_TYPES),
    )
    user_prompt = PAGE_ANALYSIS_USER_TEMPLATE.format(
        url=url,
        title=title or "(untitled)",
        language=language or "unknown",
        content=content[:MAX_CONTENT_CHARS],
    )
    return system_prompt, user_prompt


ANALYSIS_FIELDS = ("summary", "summary_en", "category", "content_type")

_FENCED_JSON = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```\s*$", re.DOTALL)


def empty_page_analysis(error: str) -> dict[str, Any]:
    """Analysis with every field unset, carrying ``error``."""
    return {field: None for field in ANALYSIS_FIELDS} | {"confidence": 0.0, "error": error}


def parse_page_analysis(text: str) -> dict[str, Any]:
    """Parse the model's JSON answer into analysis fields.

    Accepts bare JSON or a fenced ```json block. Non-string fields become
    None and confidence is clamped to 0.0-1.0. Unusable answers come back
    from ``empty_page_analysis`` with ``error`` set.
    """
    cleaned = text.strip()
    fenced = _FENCED_JSON.match(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        return empty_page_analysis("Failed to parse LLM response")
    if not isinstance(parsed, dict):
        return empty_page_analysis("LLM response was not a JSON object")

    analysis: dict[str, Any] = {}
    for field in ANALYSIS_FIELDS:
        value = parsed.get(field)
        analysis[field] = value if isinstance(value, str) else None
    confidence = parsed.get("confidence", 0.0)
    if isinstance(confidence, bool) or not isinstance(confidence, int | float):
        confidence = 0.0
    analysis["confidence"] = min(1.0, max(0.0, float(confidence)))
    analysis["error"] = parsed.get("error")
    return analysis
