"""Anthropic client that summarizes and classifies market pages."""

from __future__ import annotations

from typing import Any

import anthropic
import structlog

from src.core.llm_prompts import (
    build_page_analysis_prompt,
    empty_page_analysis,
    parse_page_analysis,
)
from src.utils.retry import RETRYABLE_EXCEPTIONS, retry_with_logging

logger = structlog.get_logger(__name__)

MAX_ANALYSIS_TOKENS = 600


class LLMClient:
    """Page analysis through the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-haiku-4-5-20251001",
        client: Any = None,
    ) -> None:
        self.client = client if client is not None else anthropic.Anthropic(api_key=api_key)
        self.model = model

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_ANALYSIS_TOKENS,
            temperature=0.0,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )

    @retry_with_logging(max_attempts=2)
    def analyze_page(
        self,
        url: str,
        title: str | None,
        content: str,
        language: str | None = None,
    ) -> dict[str, Any]:
        """Summarize and categorize a page.

        Returns dict with: summary, summary_en, category, content_type,
        confidence, error. Transient API errors are retried and then
        re-raised; other failures come back with ``error`` set.
        """
        system_prompt, user_prompt = build_page_analysis_prompt(url, title, content, language)
        try:
            text = self._complete(system_prompt, user_prompt)
        except RETRYABLE_EXCEPTIONS:
            raise
        except Exception as exc:
            logger.warning("llm_page_analysis_failed", url=url, error=str(exc))
            return empty_page_analysis(str(exc))

        analysis = parse_page_analysis(text)
        if analysis["error"]:
            logger.warning("llm_page_analysis_unusable", url=url, error=analysis["error"])
        return analysis
