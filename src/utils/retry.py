"""Exponential-backoff retries for Firecrawl and Anthropic calls, built on tenacity."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import anthropic
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.utils.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)

# requests and socket errors subclass OSError
NETWORK_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    OSError,
)

# 429 and 5xx answers; 4xx request errors are not retried
LLM_TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
)

RETRYABLE_EXCEPTIONS = NETWORK_EXCEPTIONS + LLM_TRANSIENT_EXCEPTIONS


def _retry_logger(max_attempts: int) -> Callable[[RetryCallState], None]:
    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "retrying_operation",
            function=getattr(retry_state.fn, "__name__", "unknown"),
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error_type=type(error).__name__ if error else None,
            error=str(error) if error else None,
        )

    return log_retry


def retry_with_logging(
    max_attempts: int = 3,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_EXCEPTIONS,
    wait_min: float = 2,
    wait_max: float = 10,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry ``retry_on`` exceptions up to ``max_attempts`` times.

    Waits grow exponentially from ``wait_min`` to ``wait_max`` seconds. Each
    retry is logged; the last exception is re-raised unchanged, so callers
    decide how an exhausted retry is reported.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=wait_min, max=wait_max),
            retry=retry_if_exception_type(retry_on),
            before_sleep=_retry_logger(max_attempts),
            reraise=True,
        )
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
