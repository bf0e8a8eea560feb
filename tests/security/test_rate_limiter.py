from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis

from app.security.rate_limit.limiter import (
    InMemoryRateLimitStore,
    RateLimitPresets,
    RateLimitResult,
    check_rate_limit,
    default_store,
    get_rate_limit_headers,
    retry_after_seconds,
)
from app.security.rate_limit.policies import (
    RateLimitConfig,
    build_key,
    get_rate_limit_config,
)
from app.security.rate_limit.redis_store import RedisRateLimitStore
from app.security.rate_limit.service import RateLimiter

WINDOW = 60_000


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore(clock=clock, cleanup_interval_ms=300_000)


class TestFixedWindow:
    def test_five_allowed_then_sixth_denied(self, store, clock):
        results = [store.check("ip:1.2.3.4", WINDOW, 5) for _ in range(5)]
        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0]

        denied = store.check("ip:1.2.3.4", WINDOW, 5)
        assert denied.allowed is False
        assert denied.remaining == 0
        assert denied.reset_time == clock.now + WINDOW

        headers = get_rate_limit_headers(denied, now=clock.now)
        assert int(headers["Retry-After"]) > 0

    def test_window_resets_after_reset_time(self, store, clock):
        for _ in range(6):
            store.check("k", WINDOW, 5)
        clock.advance(WINDOW + 1)
        result = store.check("k", WINDOW, 5)
        assert result.allowed is True
        assert result.remaining == 4

    def test_request_exactly_at_reset_time_is_still_in_window(self, store, clock):
        for _ in range(5):
            store.check("k", WINDOW, 5)
        clock.advance(WINDOW)
        assert store.check("k", WINDOW, 5).allowed is False

    def test_identifiers_are_independent(self, store):
        for _ in range(5):
            store.check("a", WINDOW, 5)
        assert store.check("a", WINDOW, 5).allowed is False
        assert store.check("b", WINDOW, 5).allowed is True

    def test_reset_time_fixed_within_window(self, store, clock):
        first = store.check("k", WINDOW, 5)
        clock.advance(10_000)
        second = store.check("k", WINDOW, 5)
        assert second.reset_time == first.reset_time

    def test_remaining_never_negative(self, store):
        results = [store.check("k", WINDOW, 1) for _ in range(4)]
        assert all(r.remaining >= 0 for r in results)
        assert [r.allowed for r in results] == [True, False, False, False]

    def test_zero_max_requests_allows_first_with_no_remaining(self, store):
        result = store.check("k", WINDOW, 0)
        assert result.remaining == 0


class TestCleanup:
    def test_cleanup_drops_expired_records(self, store, clock):
        store.check("old", WINDOW, 5)
        clock.advance(WINDOW + 1)
        store.check("fresh", WINDOW, 5)
        assert store.cleanup() == 1
        assert "old" not in store
        assert "fresh" in store

    def test_lazy_sweep_runs_after_interval(self, clock):
        store = InMemoryRateLimitStore(clock=clock, cleanup_interval_ms=1_000)
        store.check("old", 500, 5)
        clock.advance(1_001)
        store.check("new", 500, 5)
        assert len(store) == 1

    def test_reset_clears_everything(self, store):
        store.check("a", WINDOW, 5)
        store.reset()
        assert len(store) == 0


class TestHelpers:
    def test_check_rate_limit_prefixes_key(self, store):
        check_rate_limit("user-42", WINDOW, 5, store=store)
        assert "rate-limit:user-42" in store
        assert "rate-limit:user-42" not in default_store

    @pytest.mark.asyncio
    async def test_limiter_uses_the_store_it_was_given(self, store, clock):
        assert len(store) == 0
        limiter = RateLimiter(memory_store=store, use_redis=False, clock=clock)
        assert limiter.memory is store

        await limiter.check("k", WINDOW, 5)
        assert "k" in store
        assert "k" not in default_store

    def test_presets(self):
        assert RateLimitPresets.STRICT.max_requests == 5
        assert RateLimitPresets.STRICT.window_ms == 15 * 60 * 1000
        assert RateLimitPresets.STANDARD.max_requests == 10
        assert RateLimitPresets.FORM_SUBMISSION.max_requests == 3

    def test_retry_after_is_at_least_one_second(self):
        assert retry_after_seconds(1_000, 1_000) == 1
        assert retry_after_seconds(10_500, 1_000) == 10

    def test_headers_for_allowed_result(self):
        result = RateLimitResult(allowed=True, remaining=3, reset_time=61_500, limit=5)
        headers = get_rate_limit_headers(result)
        assert headers == {
            "X-RateLimit-Limit": "5",
            "X-RateLimit-Remaining": "3",
            "X-RateLimit-Reset": "62",
        }

    def test_endpoint_config_resolution(self):
        signup = get_rate_limit_config("/api/auth/signup")
        assert (signup.window_ms, signup.max_requests) == (15 * 60 * 1000, 5)

        unknown = get_rate_limit_config("/api/unknown")
        assert (unknown.window_ms, unknown.max_requests) == (60_000, 60)

        override = get_rate_limit_config("/api/auth/signup", max_requests=1)
        assert override.max_requests == 1
        assert override.message == signup.message

    def test_build_key_includes_limits(self):
        key = build_key(RateLimitConfig(window_ms=60_000, max_requests=5), "1.2.3.4")
        assert key == "rate-limit:60000:5:1.2.3.4"


def _redis_client(zcard: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, zcard, 1, True])
    client = MagicMock()
    client.pipeline.return_value.__aenter__ = AsyncMock(return_value=pipe)
    client.pipeline.return_value.__aexit__ = AsyncMock(return_value=False)
    return client


class TestRedisBackend:
    @pytest.mark.asyncio
    async def test_sliding_window_counts_existing_members(self, clock):
        store = RedisRateLimitStore(client=_redis_client(zcard=2), clock=clock)
        result = await store.check("k", WINDOW, 5)
        assert result.allowed is True
        assert result.remaining == 2

        full = RedisRateLimitStore(client=_redis_client(zcard=5), clock=clock)
        denied = await full.check("k", WINDOW, 5)
        assert denied.allowed is False
        assert denied.remaining == 0

    @pytest.mark.asyncio
    async def test_limiter_falls_back_to_memory_on_redis_error(self, clock):
        failing = MagicMock(spec=RedisRateLimitStore)
        failing.check = AsyncMock(side_effect=redis.ConnectionError("down"))
        limiter = RateLimiter(redis_store=failing, use_redis=True, clock=clock)

        result = await limiter.check("k", WINDOW, 5)
        assert result.allowed is True
        assert "k" in limiter.memory
