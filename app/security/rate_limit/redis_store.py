"""
Redis-backed sliding-window rate limiting.

Each request is a sorted-set member scored by its timestamp. Members older
than the window are trimmed before counting, so the window slides with every
request and is shared by all workers talking to the same Redis.
"""

from __future__ import annotations

import math
import secrets
from typing import Optional

import redis.asyncio as redis

from app.core.config import settings
from app.security.rate_limit.limiter import Clock, RateLimitResult, now_ms
from app.utils.logger import get_logger

logger = get_logger(__name__)


class RedisRateLimitStore:
    def __init__(
        self, client: Optional[redis.Redis] = None, clock: Optional[Clock] = None
    ) -> None:
        self._client = client
        self._clock = clock or now_ms

    async def _client_or_create(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_rate_limiting_enabled", url=settings.redis_url)
        return self._client

    async def check(
        self, key: str, window_ms: float, max_requests: int
    ) -> RateLimitResult:
        client = await self._client_or_create()
        now = self._clock()
        window_start = now - window_ms
        member = f"{int(now)}-{secrets.token_hex(4)}"

        async with client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, window_start)
            pipe.zcard(key)
            pipe.zadd(key, {member: now})
            pipe.expire(key, max(1, math.ceil(window_ms / 1000)))
            results = await pipe.execute()

        count = int(results[1])
        return RateLimitResult(
            allowed=count < max_requests,
            remaining=max(0, max_requests - count - 1),
            reset_time=now + window_ms,
            limit=max_requests,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
