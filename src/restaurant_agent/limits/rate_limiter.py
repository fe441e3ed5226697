"""Sliding-window admission gate for upstream LLM calls."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable

from restaurant_agent.config import RateLimitConfig


class SlidingWindowRateLimiter:
    """Admits at most `max_requests` calls per trailing `window_seconds`.

    State lives in memory and belongs to one agent instance; it is not shared
    across processes and resets on restart. The limiter never blocks, callers
    decide whether to wait, fall back, or fail fast.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._window: deque[float] = deque()

    @classmethod
    def from_config(
        cls,
        config: RateLimitConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SlidingWindowRateLimiter":
        return cls(config.max_requests, config.window_seconds, clock=clock)

    def try_admit(self) -> bool:
        now = self._clock()
        self._prune(now)
        if len(self._window) >= self.max_requests:
            return False
        self._window.append(now)
        return True

    def time_until_next_slot(self) -> float:
        """Seconds until the oldest admission leaves the window (0 if admissible)."""
        now = self._clock()
        self._prune(now)
        if len(self._window) < self.max_requests:
            return 0.0
        return max(0.0, self._window[0] + self.window_seconds - now)

    def remaining(self) -> int:
        self._prune(self._clock())
        return self.max_requests - len(self._window)

    def reset(self) -> None:
        self._window.clear()

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._window and self._window[0] <= cutoff:
            self._window.popleft()
