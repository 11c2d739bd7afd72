"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: check-and-increment and window resets happen under one lock.
- Bounded: entries from elapsed windows are purged every ``purge_every``
  consumes, so idle clients do not accumulate.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: int
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Windows are aligned to multiples of ``window_seconds`` so every key shares
    the same boundaries; a key's counter starts from zero as soon as its
    stored window no longer matches the current one.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_every: int = 1000,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.
            purge_every: Run ``purge_expired`` after this many consumes.

        Raises:
            ValueError: If limit, window_seconds or purge_every are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if purge_every < 1:
            raise ValueError("purge_every must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._purge_every = purge_every
        self._consumes_since_purge = 0
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _get_window_bounds(self, now: float) -> tuple[int, int]:
        """Compute fixed-window boundaries for a given timestamp.

        Args:
            now: UNIX time in seconds.

        Returns:
            Tuple of (window_start_epoch_seconds, reset_at_epoch_seconds).
        """
        window_start = int(now // self._window_seconds) * self._window_seconds
        reset_at = window_start + self._window_seconds
        return window_start, reset_at

    def _get_or_reset_state(self, key: str, window_start: int) -> _WindowState:
        state = self._state_by_key.get(key)
        if state is None or state.window_start != window_start:
            state = _WindowState(window_start=window_start, count=0)
            self._state_by_key[key] = state
        return state

    def _purge_before(self, window_start: int) -> int:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if state.window_start < window_start
        ]
        for key in expired:
            del self._state_by_key[key]
        return len(expired)

    def purge_expired(self) -> int:
        """Remove every entry whose window has elapsed.

        Returns:
            Number of entries removed.
        """
        window_start, _ = self._get_window_bounds(self._clock())
        with self._lock:
            self._consumes_since_purge = 0
            return self._purge_before(window_start)

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        This method both checks the current window usage and mutates the state
        if the request is allowed. Blocked requests do not increase the count.

        Args:
            key: Unique identifier for rate limiting (client address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        window_start, reset_at = self._get_window_bounds(now)

        with self._lock:
            self._consumes_since_purge += 1
            if self._consumes_since_purge >= self._purge_every:
                self._consumes_since_purge = 0
                self._purge_before(window_start)

            state = self._get_or_reset_state(key, window_start)

            if state.count + cost <= self._limit:
                state.count += cost
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=max(0, self._limit - state.count),
                    reset_at=reset_at,
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - state.count),
                reset_at=reset_at,
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )
