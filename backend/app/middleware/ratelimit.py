"""Rate limiting middleware."""

from datetime import datetime
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, HTTPException, Request, status

from backend.app.api.auth import get_current_context
from backend.app.config import get_settings
from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.repositories import RateLimiter
from backend.app.ratelimit import RedisRateLimiter, make_rate_limit_key


class RateLimitMiddleware:
    """Middleware for rate limiting HTTP requests.

    Maps request paths to buckets and enforces per-bucket limits.
    """

    def __init__(
        self,
        limiters: dict[str, RateLimiter],
        bucket_map: dict[str, str],
    ) -> None:
        """Initialize rate limit middleware.

        Args:
            limiters: Rate limiter per bucket name
            bucket_map: Mapping from path patterns to bucket names
        """
        self._limiters = limiters
        self._bucket_map = bucket_map

    async def check_rate_limit(
        self, path: str, ctx: RequestContext, now: datetime | None = None
    ) -> tuple[bool, int]:
        """Check if request is allowed under rate limit.

        Args:
            path: Request path
            ctx: Request context
            now: Current time (for testing)

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        if now is None:
            now = datetime.now()

        bucket = self._get_bucket(path)
        if bucket is None or bucket not in self._limiters:
            return (True, 0)

        key = make_rate_limit_key(ctx, bucket)
        retry_after = await self._limiters[bucket].check_quota(key, now)

        if retry_after is None:
            return (True, 0)

        return (False, retry_after.seconds)

    def _get_bucket(self, path: str) -> str | None:
        """Get bucket name for path, first matching prefix wins."""
        for pattern, bucket in self._bucket_map.items():
            if path.startswith(pattern):
                return bucket

        return None


def create_default_bucket_map() -> dict[str, str]:
    """Create default bucket mapping.

    Returns:
        Dictionary mapping path prefixes to bucket names
    """
    return {
        "/companies": "crud",
        "/audit-logs": "audit_read",
    }


_middleware: RateLimitMiddleware | None = None


def get_rate_limit_middleware() -> RateLimitMiddleware:
    """Get global rate limit middleware, Redis-backed when configured."""
    global _middleware
    if _middleware is None:
        settings = get_settings()
        quotas = {"crud": settings.crud_ops_per_min, "audit_read": settings.audit_reads_per_min}

        limiters: dict[str, RateLimiter]
        if settings.redis_url:
            client = redis.from_url(settings.redis_url, decode_responses=True)
            limiters = {name: RedisRateLimiter(client, quota) for name, quota in quotas.items()}
        else:
            limiters = {name: InMemoryRateLimiter(quota) for name, quota in quotas.items()}

        _middleware = RateLimitMiddleware(limiters, create_default_bucket_map())
    return _middleware


async def enforce_rate_limit(
    request: Request,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    middleware: Annotated[RateLimitMiddleware, Depends(get_rate_limit_middleware)],
) -> RequestContext:
    """Tenant-scoped context dependency that also enforces the rate limit.

    Raises:
        HTTPException: 429 with Retry-After when over quota
    """
    allowed, retry_after = await middleware.check_rate_limit(request.url.path, ctx)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please slow down.",
            headers={"Retry-After": str(retry_after)},
        )
    return ctx
