"""Per-client sliding-window rate limiting for public status endpoints."""

from __future__ import annotations

import time
from collections.abc import Callable

WINDOW_SECONDS = 60.0


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per key within any ``window`` seconds."""

    def __init__(
        self,
        limit: int,
        *,
        window: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        now = self._clock()
        self._sweep(now)
        recent = [stamp for stamp in self._hits.get(key, ()) if now - stamp < self._window]
        allowed = len(recent) < self._limit
        if allowed:
            recent.append(now)
        self._hits[key] = recent
        return allowed

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def _sweep(self, now: float) -> None:
        # Idle clients are forgotten at most once per window.
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        idle = [key for key, stamps in self._hits.items() if not stamps or now - stamps[-1] >= self._window]
        for key in idle:
            del self._hits[key]
