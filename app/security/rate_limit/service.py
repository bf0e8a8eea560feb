from __future__ import annotations

from typing import Awaitable, Callable, Optional

import redis.asyncio as redis
import sentry_sdk
from starlette.requests import Request

from app.core.config import settings
from app.security.monitoring.security_metrics import BLOCKED_REQUESTS_TOTAL
from app.security.rate_limit.limiter import (
    Clock,
    InMemoryRateLimitStore,
    RateLimitResult,
    get_rate_limit_headers,
    now_ms,
    retry_after_seconds,
)
from app.security.rate_limit.policies import (
    KeyGenerator,
    LimitReachedHook,
    RateLimitConfig,
    build_key,
    get_identifier,
    get_rate_limit_config,
)
from app.security.rate_limit.redis_store import RedisRateLimitStore
from app.utils.error_handler import RateLimitExceededError
from app.utils.logger import get_logger

logger = get_logger(__name__)

RATE_LIMIT_HEADERS_STATE = "rate_limit_headers"


class RateLimiter:
    """
    Checks requests against their endpoint limits.

    Uses the Redis sliding window when enabled and falls back to the
    in-memory fixed window whenever Redis errors.
    """

    def __init__(
        self,
        memory_store: Optional[InMemoryRateLimitStore] = None,
        redis_store: Optional[RedisRateLimitStore] = None,
        use_redis: Optional[bool] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._clock = clock or now_ms
        self.memory = (
            memory_store
            if memory_store is not None
            else InMemoryRateLimitStore(clock=self._clock)
        )
        self.use_redis = (
            settings.RATE_LIMIT_REDIS_ENABLED if use_redis is None else use_redis
        )
        self._redis = redis_store

    def now(self) -> float:
        return self._clock()

    @property
    def redis_store(self) -> RedisRateLimitStore:
        if self._redis is None:
            self._redis = RedisRateLimitStore(clock=self._clock)
        return self._redis

    async def check(
        self, key: str, window_ms: float, max_requests: int
    ) -> RateLimitResult:
        if self.use_redis:
            try:
                return await self.redis_store.check(key, window_ms, max_requests)
            except redis.RedisError as e:
                logger.warning("redis_rate_limit_fallback", error=str(e))
        return self.memory.check(key, window_ms, max_requests)

    async def check_request(
        self, request: Request, config: RateLimitConfig
    ) -> RateLimitResult:
        identifier = get_identifier(request, config.key_generator)
        result = await self.check(
            build_key(config, identifier), config.window_ms, config.max_requests
        )
        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                path=request.url.path,
                limit=result.limit,
            )
            if config.on_limit_reached is not None:
                config.on_limit_reached(identifier, request)
        return result

    def reset(self) -> None:
        self.memory.reset()

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.close()


rate_limiter = RateLimiter()


def enforce_rate_limit(
    endpoint: Optional[str] = None,
    *,
    window_ms: Optional[int] = None,
    max_requests: Optional[int] = None,
    message: Optional[str] = None,
    key_generator: Optional[KeyGenerator] = None,
    on_limit_reached: Optional[LimitReachedHook] = None,
) -> Callable[[Request], Awaitable[Optional[RateLimitResult]]]:
    """
    Build a FastAPI dependency enforcing the limits of ``endpoint``.

    Denied requests raise ``RateLimitExceededError`` (429). Allowed requests
    leave their rate-limit headers on ``request.state`` for
    ``RateLimitHeadersMiddleware``. A failing limiter lets the request through.
    """

    async def _dependency(request: Request) -> Optional[RateLimitResult]:
        config = get_rate_limit_config(
            endpoint or request.url.path,
            window_ms=window_ms,
            max_requests=max_requests,
            message=message,
            key_generator=key_generator,
            on_limit_reached=on_limit_reached,
        )
        try:
            result = await rate_limiter.check_request(request, config)
        except Exception as e:  # noqa: BLE001
            logger.error(
                "rate_limit_check_failed", path=request.url.path, error=str(e)
            )
            sentry_sdk.capture_exception(e)
            return None

        now = rate_limiter.now()
        headers = get_rate_limit_headers(result, now=now)
        setattr(request.state, RATE_LIMIT_HEADERS_STATE, headers)

        if not result.allowed:
            BLOCKED_REQUESTS_TOTAL.labels(control="rate_limit").inc()
            raise RateLimitExceededError(
                config.message,
                retry_after=retry_after_seconds(result.reset_time, now),
                headers=headers,
            )
        return result

    return _dependency
