"""Redis-backed fixed-window rate limiting for tenant-scoped routes."""

from datetime import datetime

import redis.asyncio as redis

from backend.app.db.context import RequestContext
from backend.app.db.repositories import RetryAfter


def make_rate_limit_key(ctx: RequestContext, bucket: str) -> str:
    """Key a quota by tenant, caller and bucket.

    Args:
        ctx: Request context with the resolved organization
        bucket: Bucket name ("crud" or "audit_read")

    Returns:
        ``<org_id>:<user_id>:<bucket>``
    """
    return f"{ctx.org_id}:{ctx.user_id}:{bucket}"


class RedisRateLimiter:
    """Fixed-window limiter shared across workers through Redis.

    Each window gets its own counter key that expires with the window, so no
    cleanup is needed.
    """

    def __init__(self, redis_client: redis.Redis, max_requests: int, window_seconds: int = 60) -> None:
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    def _window_key(self, key: str, now: datetime) -> str:
        window_start = int(now.timestamp() / self._window_seconds) * self._window_seconds
        return f"ratelimit:{key}:{window_start}"

    async def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Count one request against the current window.

        Returns:
            RetryAfter if over quota, None if allowed
        """
        redis_key = self._window_key(key, now)

        count = await self._redis.incr(redis_key)
        if count == 1:
            await self._redis.expire(redis_key, self._window_seconds)

        if count <= self._max_requests:
            return None

        # -1 (no expiry) or -2 (gone) fall back to one second
        ttl = await self._redis.ttl(redis_key)
        return RetryAfter(seconds=max(1, ttl))
