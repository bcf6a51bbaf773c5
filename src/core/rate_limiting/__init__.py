"""Rate limiting package.

Provides per-client request rate limiting using Redis fixed windows.
"""

import logging
import time

import redis.asyncio as redis

from src.core.config import get_settings

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, limit: int, remaining: int, retry_after: int):
        self.limit = limit
        self.remaining = remaining
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after {retry_after}s")


class RequestRateLimiter:
    """Per-client request rate limiting.

    Counts requests per client in fixed windows; the counter key expires
    shortly after its window closes. Redis failures let the request through.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        max_requests: int = 100,
        window_seconds: int = 900,
    ):
        self.redis = redis_client
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def _window(self, now: float) -> tuple[int, int]:
        """Return (window index, seconds until the window resets)."""
        window_index = int(now // self.window_seconds)
        reset_in = self.window_seconds - int(now % self.window_seconds)
        return window_index, reset_in

    async def check_and_increment(self, client_id: str) -> tuple[bool, int]:
        """Check if request is allowed and increment counter.

        Returns:
            Tuple of (allowed, remaining_requests)

        Raises:
            RateLimitExceeded: If the client is over its limit for this window
        """
        window_index, reset_in = self._window(time.time())
        key = f"rl:{client_id}:{window_index}"

        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 10)
            current, _ = await pipe.execute()
        except Exception as e:
            logger.warning(f"[RateLimit] Redis unavailable, allowing request: {e}")
            return True, self.max_requests

        remaining = max(0, self.max_requests - current)
        if current > self.max_requests:
            raise RateLimitExceeded(limit=self.max_requests, remaining=0, retry_after=reset_in)

        return True, remaining

    async def close(self) -> None:
        await self.redis.aclose()


# Global rate limiter instance
_rate_limiter: RequestRateLimiter | None = None


def get_rate_limiter() -> RequestRateLimiter:
    """Get or create the global rate limiter instance."""
    global _rate_limiter

    if _rate_limiter is None:
        settings = get_settings()
        redis_client = redis.from_url(settings.redis_url)
        _rate_limiter = RequestRateLimiter(
            redis_client=redis_client,
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    return _rate_limiter


async def shutdown_rate_limiter() -> None:
    """Close the global rate limiter's Redis connection."""
    global _rate_limiter
    if _rate_limiter is not None:
        await _rate_limiter.close()
        _rate_limiter = None


__all__ = [
    "RateLimitExceeded",
    "RequestRateLimiter",
    "get_rate_limiter",
    "shutdown_rate_limiter",
]
