from app.security.rate_limit.limiter import (
    InMemoryRateLimitStore,
    RateLimitPresets,
    RateLimitResult,
    check_rate_limit,
    get_rate_limit_headers,
)
from app.security.rate_limit.policies import (
    ENDPOINT_RATE_LIMITS,
    RateLimitConfig,
    get_client_identifier,
    get_rate_limit_config,
    get_user_identifier,
)
from app.security.rate_limit.service import RateLimiter, enforce_rate_limit, rate_limiter

__all__ = [
    "ENDPOINT_RATE_LIMITS",
    "InMemoryRateLimitStore",
    "RateLimitConfig",
    "RateLimitPresets",
    "RateLimitResult",
    "RateLimiter",
    "check_rate_limit",
    "enforce_rate_limit",
    "get_client_identifier",
    "get_rate_limit_config",
    "get_rate_limit_headers",
    "get_user_identifier",
    "rate_limiter",
]
