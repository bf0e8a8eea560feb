"""
Fixed-window rate limiting.

Each identifier owns a counter and a window end (``reset_time``, epoch
milliseconds). The first request after the window ends opens a new window;
requests beyond ``max_requests`` inside a window are denied until it ends.
The in-memory store is process-local; see ``redis_store`` for the shared
backend used when several workers serve the site.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.core.config import settings

Clock = Callable[[], float]


def now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float  # epoch milliseconds
    limit: int


@dataclass
class _WindowRecord:
    count: int
    reset_time: float
    first_request: float


@dataclass(frozen=True)
class RateLimitPreset:
    window_ms: int
    max_requests: int


class RateLimitPresets:
    """Named window/limit pairs shared by the API routes."""

    STRICT = RateLimitPreset(window_ms=15 * 60 * 1000, max_requests=5)
    STANDARD = RateLimitPreset(window_ms=60 * 1000, max_requests=10)
    LENIENT = RateLimitPreset(window_ms=60 * 60 * 1000, max_requests=100)
    FORM_SUBMISSION = RateLimitPreset(window_ms=15 * 60 * 1000, max_requests=3)
    API = RateLimitPreset(window_ms=60 * 1000, max_requests=60)


class InMemoryRateLimitStore:
    """
    Thread-safe fixed-window counters keyed by string.

    Expired records are swept lazily, at most once per cleanup interval, so
    the store does not grow with one-off identifiers.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        cleanup_interval_ms: Optional[float] = None,
    ) -> None:
        self._clock = clock or now_ms
        self._records: Dict[str, _WindowRecord] = {}
        self._lock = threading.Lock()
        if cleanup_interval_ms is None:
            cleanup_interval_ms = settings.RATE_LIMIT_CLEANUP_INTERVAL_SECONDS * 1000
        self._cleanup_interval_ms = cleanup_interval_ms
        self._last_cleanup = self._clock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def check(
        self,
        key: str,
        window_ms: float,
        max_requests: int,
        now: Optional[float] = None,
    ) -> RateLimitResult:
        now = self._clock() if now is None else now
        with self._lock:
            if now - self._last_cleanup >= self._cleanup_interval_ms:
                self._sweep(now)

            record = self._records.get(key)

            if record is None or now > record.reset_time:
                reset_time = now + window_ms
                self._records[key] = _WindowRecord(
                    count=1, reset_time=reset_time, first_request=now
                )
                return RateLimitResult(
                    allowed=True,
                    remaining=max(0, max_requests - 1),
                    reset_time=reset_time,
                    limit=max_requests,
                )

            if record.count >= max_requests:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    reset_time=record.reset_time,
                    limit=max_requests,
                )

            record.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=max(0, max_requests - record.count),
                reset_time=record.reset_time,
                limit=max_requests,
            )

    def cleanup(self, now: Optional[float] = None) -> int:
        """Drop records whose window has ended. Returns how many were removed."""
        now = self._clock() if now is None else now
        with self._lock:
            return self._sweep(now)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def _sweep(self, now: float) -> int:
        expired = [k for k, r in self._records.items() if r.reset_time < now]
        for k in expired:
            del self._records[k]
        self._last_cleanup = now
        return len(expired)


default_store = InMemoryRateLimitStore()


def check_rate_limit(
    identifier: str,
    window_ms: float,
    max_requests: int,
    store: Optional[InMemoryRateLimitStore] = None,
) -> RateLimitResult:
    """Check and count one request for ``identifier``."""
    store = store if store is not None else default_store
    return store.check(f"rate-limit:{identifier}", window_ms, max_requests)


def retry_after_seconds(reset_time: float, now: float) -> int:
    """Whole seconds until the window ends, never below one."""
    return max(1, math.ceil((reset_time - now) / 1000))


def get_rate_limit_headers(
    result: RateLimitResult, now: Optional[float] = None
) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_time / 1000)),
    }
    if not result.allowed:
        now = now_ms() if now is None else now
        headers["Retry-After"] = str(retry_after_seconds(result.reset_time, now))
    return headers
