"""Handler timing."""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger("sonarqube_mcp")


class Stopwatch:
    """Times one tool handler call.

    ``elapsed_ms`` is set when the block exits, whether or not it raised.
    """

    def __init__(self, label: str, clock: Callable[[], float] = time.perf_counter):
        self.label = label
        self.elapsed_ms: float | None = None
        self._clock = clock
        self._start = 0.0

    def __enter__(self) -> Stopwatch:
        self._start = self._clock()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.elapsed_ms = round((self._clock() - self._start) * 1000, 3)
        logger.debug("%s handler took %.1fms", self.label, self.elapsed_ms)
