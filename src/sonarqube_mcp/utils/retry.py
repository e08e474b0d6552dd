"""Retry helper with exponential backoff for transient errors."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable

import httpx

from sonarqube_mcp.sonarqube.errors import SonarQubeAPIError

logger = logging.getLogger("sonarqube_mcp")

# Status codes that are safe to retry
_RETRYABLE_CODES = {429, 500, 502, 503, 504}


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, SonarQubeAPIError):
        return error.status_code in _RETRYABLE_CODES
    # Connection refused, reset, read timeouts
    return isinstance(error, httpx.TransportError)


def retry(max_attempts: int = 3, base_delay: float = 1.0, max_delay: float = 5.0) -> Callable:
    """Decorator that retries on transient SonarQube errors with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts.
        base_delay: Initial delay in seconds, doubled on each retry.
        max_delay: Upper bound for a single delay.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_attempts):
                try:
                    return await fn(*args, **kwargs)
                except (SonarQubeAPIError, httpx.TransportError) as e:
                    if not _is_retryable(e) or attempt == max_attempts - 1:
                        raise
                    delay = min(base_delay * (2**attempt), max_delay)
                    logger.warning(
                        "Retrying %s (attempt %d/%d) after %ss: %s",
                        fn.__name__,
                        attempt + 1,
                        max_attempts,
                        delay,
                        e,
                    )
                    await asyncio.sleep(delay)
            raise RuntimeError("retry loop exited without result")  # pragma: no cover

        return wrapper

    return decorator
