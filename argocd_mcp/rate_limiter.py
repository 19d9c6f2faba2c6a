"""Client-side rate limiting for Argo CD API calls.

Implements a token bucket: tokens refill at ``requests_per_second`` up to
``burst_limit``. Callers either wait for a token (``acquire``) or check
without blocking (``try_acquire``).
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting behavior."""

    requests_per_second: float = 10.0
    burst_limit: int = 20  # Bucket capacity


@dataclass
class RateLimitStats:
    """Statistics about rate limiting."""

    total_requests: int = 0
    delayed_requests: int = 0
    total_wait_seconds: float = 0.0

    @property
    def delay_rate(self) -> float:
        """Percentage of requests that had to wait for a token."""
        if self.total_requests == 0:
            return 0.0
        return self.delayed_requests / self.total_requests * 100

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total_requests": self.total_requests,
            "delayed_requests": self.delayed_requests,
            "total_wait_seconds": round(self.total_wait_seconds, 3),
            "delay_rate_percent": round(self.delay_rate, 2),
        }


class RateLimiter:
    """Token bucket rate limiter.

    Example:
        limiter = RateLimiter(RateLimitConfig(requests_per_second=10))

        await limiter.acquire()
        response = await http.get(url)
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RateLimitConfig()
        if self.config.requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        if self.config.burst_limit < 1:
            raise ValueError("burst_limit must be at least 1")
        self._clock = clock
        self._tokens = float(self.config.burst_limit)
        self._updated = clock()
        self._lock = asyncio.Lock()
        self.stats = RateLimitStats()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(
            float(self.config.burst_limit),
            self._tokens + elapsed * self.config.requests_per_second,
        )
        self._updated = now

    def try_acquire(self) -> bool:
        """Take a token if one is available.

        Returns:
            True if the request may proceed, False if it would exceed the rate.
        """
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            self.stats.total_requests += 1
            return True
        return False

    @property
    def retry_after(self) -> float:
        """Seconds until the next token becomes available."""
        self._refill()
        if self._tokens >= 1.0:
            return 0.0
        return (1.0 - self._tokens) / self.config.requests_per_second

    @property
    def tokens_available(self) -> int:
        """Whole tokens currently in the bucket."""
        self._refill()
        return int(self._tokens)

    async def acquire(self) -> None:
        """Wait until a token is available, then take it."""
        async with self._lock:
            waited = 0.0
            while not self.try_acquire():
                delay = self.retry_after
                waited += delay
                await asyncio.sleep(delay)
            if waited:
                self.stats.delayed_requests += 1
                self.stats.total_wait_seconds += waited

    def reset(self) -> None:
        """Refill the bucket and clear statistics."""
        self._tokens = float(self.config.burst_limit)
        self._updated = self._clock()
        self.stats = RateLimitStats()

    def get_stats(self) -> RateLimitStats:
        """Get current rate limiting statistics."""
        return self.stats
