"""
Rate Limiter
============
Async token bucket used to keep exchange requests below the upstream limit
(10 req/s against Binance's 20 req/s).
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenBucketRateLimiter:
    """
    Token bucket that suspends the caller until a token is available

    Tokens refill continuously at `rate` per second up to `capacity`.
    With capacity 1 calls are spaced at least 1/rate seconds apart, so no
    1-second window ever contains more than `rate` acquisitions.

    Example:
        >>> limiter = TokenBucketRateLimiter(rate=10.0)
        >>> await limiter.acquire()  # returns immediately
        >>> await limiter.acquire()  # waits ~100ms
    """

    def __init__(
        self,
        rate: float = 10.0,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize token bucket

        Args:
            rate: Tokens added per second
            capacity: Maximum burst size
            clock: Monotonic time source (seconds)
            sleep: Async sleep function

        Raises:
            ValueError: If rate or capacity is not positive
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")

        self.rate = float(rate)
        self.capacity = float(capacity)
        self._clock = clock
        self._sleep = sleep

        self.tokens = self.capacity
        self.last_refill_time = clock()
        self.total_acquired = 0
        self.total_wait_seconds = 0.0

        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Take one token, waiting for the refill if the bucket is empty"""
        async with self._lock:
            while True:
                self._refill_tokens()
                if self.tokens >= 1:
                    self.tokens -= 1
                    self.total_acquired += 1
                    return

                wait_time = (1 - self.tokens) / self.rate
                logger.debug(f"Rate limit reached, waiting {wait_time:.3f}s")
                self.total_wait_seconds += wait_time
                await self._sleep(wait_time)

    def _refill_tokens(self) -> None:
        now = self._clock()
        elapsed = now - self.last_refill_time
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_refill_time = now

    def get_stats(self) -> dict:
        """Get limiter statistics without modifying state"""
        return {
            "type": "token_bucket",
            "rate": self.rate,
            "capacity": self.capacity,
            "total_acquired": self.total_acquired,
            "total_wait_seconds": round(self.total_wait_seconds, 3),
        }
