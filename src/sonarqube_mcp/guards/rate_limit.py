"""Per-caller sliding-window rate limiting for MCP tools.

Each caller (the user id from the current request, or ``anonymous`` on
stdio) gets its own window, so one busy client cannot starve the others.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections import deque
from typing import Any, Callable

from sonarqube_mcp.auth.context import current_request_context, user_context_from_access_token
from sonarqube_mcp.sonarqube.errors import SonarQubeAPIError

ANONYMOUS = "anonymous"


class RateLimiter:
    """Sliding-window limiter keyed by caller."""

    def __init__(self, max_calls: int, period: int, clock: Callable[[], float] = time.monotonic):
        self.max_calls = max_calls
        self.period = period
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    def _drop_idle(self, now: float) -> None:
        # A window whose newest call left the period holds nothing to enforce
        idle = [c for c, w in self._windows.items() if not w or now - w[-1] >= self.period]
        for caller in idle:
            del self._windows[caller]

    async def acquire(self, caller: str = ANONYMOUS) -> None:
        async with self._lock:
            now = self._clock()
            self._drop_idle(now)
            window = self._windows.setdefault(caller, deque())
            while window and now - window[0] >= self.period:
                window.popleft()
            if len(window) >= self.max_calls:
                retry_after = self.period - (now - window[0])
                raise SonarQubeAPIError(
                    f"Rate limit exceeded for {caller}: {self.max_calls} calls per {self.period}s. "
                    f"Retry in {retry_after:.0f}s.",
                    status_code=429,
                )
            window.append(now)


_limiter: RateLimiter | None = None


def _get_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        from sonarqube_mcp.lifespan import get_settings

        settings = get_settings()
        _limiter = RateLimiter(settings.rate_limit_calls, settings.rate_limit_period)
    return _limiter


def reset_limiter() -> None:
    """Drop the shared limiter; the next call rebuilds it from settings."""
    global _limiter
    _limiter = None


def current_caller() -> str:
    context = current_request_context()
    if context is not None and context.user_context is not None:
        user = context.user_context
    else:
        user = user_context_from_access_token()
    return (user.user_id if user else None) or ANONYMOUS


def rate_limit(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Charge one call to the current caller's window before running the tool."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        await _get_limiter().acquire(current_caller())
        return await fn(*args, **kwargs)

    return wrapper
