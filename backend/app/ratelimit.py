"""Rate limiting utilities."""

from datetime import datetime

import redis.asyncio as redis

from backend.app.config import Settings
from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.repositories import RateLimiter, RetryAfter


def make_rate_limit_key(ctx: RequestContext, bucket: str) -> str:
    """Create rate limit key from context and bucket.

    Args:
        ctx: Request context
        bucket: Bucket name (e.g., "weather", "crud")

    Returns:
        Rate limit key
    """
    return f"{ctx.account_id}:{bucket}"


def make_global_rate_limit_key(bucket: str) -> str:
    """Create the key shared by every caller for a bucket."""
    return f"global:{bucket}"


class RedisRateLimiter:
    """Redis-based rate limiter using INCR + EXPIRE pattern on the asyncio client."""

    def __init__(self, redis_client: redis.Redis, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            redis_client: Redis client
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Uses Redis INCR + EXPIRE for atomic counting.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        # Use a window-aligned key
        window_start = int(now.timestamp() / self._window_seconds) * self._window_seconds
        redis_key = f"ratelimit:{key}:{window_start}"

        # Atomic increment
        count = await self._redis.incr(redis_key)

        # Set expiry on first request
        if count == 1:
            await self._redis.expire(redis_key, self._window_seconds)

        if count > self._max_requests:
            # Over quota - calculate retry-after
            ttl = await self._redis.ttl(redis_key)
            return RetryAfter(seconds=max(1, ttl))

        return None


def create_rate_limiter(settings: Settings, max_requests: int, window_seconds: int) -> RateLimiter:
    """Create a Redis limiter when REDIS_URL is set, otherwise an in-memory one."""
    if settings.redis_url:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        return RedisRateLimiter(client, max_requests=max_requests, window_seconds=window_seconds)
    return InMemoryRateLimiter(max_requests=max_requests, window_seconds=window_seconds)
