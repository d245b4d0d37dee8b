"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- No background sweep: a client's timestamps are pruned lazily on that
  client's next request, so keys of clients that stop calling stay in memory.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

from characters_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests in the trailing ``window_seconds``.

    Each key owns an ordered sequence of admission timestamps. On every call
    timestamps at least ``window_seconds`` old are discarded; the request is
    admitted only while fewer than ``max_requests`` remain. Rejected requests
    are not recorded, so hammering a closed window never extends it.

    All timestamps come from ``clock`` and are compared in seconds.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            max_requests: Admission ceiling per window.
            window_seconds: Length of the sliding window in seconds.
            clock: Time source returning seconds (monotonic by default).

        Raises:
            ValueError: If max_requests or window_seconds are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._timestamps_by_key: dict[str, deque[float]] = {}

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _prune_locked(self, timestamps: deque[float], now: float) -> None:
        while timestamps and now - timestamps[0] >= self._window_seconds:
            timestamps.popleft()

    def consume(self, key: str) -> RateLimitResult:
        """Admit or reject one request for ``key``.

        The prune-check-append sequence runs under the lock so two concurrent
        requests from one client cannot both observe a stale count.

        Args:
            key: Client identifier.

        Returns:
            RateLimitResult with the admission decision.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            timestamps = self._timestamps_by_key.setdefault(key, deque())
            self._prune_locked(timestamps, now)

            if len(timestamps) >= self._max_requests:
                return RateLimitResult(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                )

            timestamps.append(now)
            return RateLimitResult(
                allowed=True,
                limit=self._max_requests,
                remaining=self._max_requests - len(timestamps),
            )

    def tracked_keys(self) -> int:
        """Number of client keys currently held in memory."""
        with self._lock:
            return len(self._timestamps_by_key)
