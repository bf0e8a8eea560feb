from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from starlette.requests import Request

DEFAULT_WINDOW_MS = 60 * 1000
DEFAULT_MAX_REQUESTS = 60
DEFAULT_MESSAGE = "Too many requests. Please try again later."

KeyGenerator = Callable[[Request], str]
LimitReachedHook = Callable[[str, Request], None]


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int
    message: str = DEFAULT_MESSAGE
    key_generator: Optional[KeyGenerator] = None
    on_limit_reached: Optional[LimitReachedHook] = None


_MINUTE = 60 * 1000
_FIFTEEN_MINUTES = 15 * _MINUTE

ENDPOINT_RATE_LIMITS: Dict[str, RateLimitConfig] = {
    # Authentication
    "/api/auth/signup": RateLimitConfig(
        _FIFTEEN_MINUTES, 5, "Too many signup attempts. Please try again later."
    ),
    "/api/auth/signin": RateLimitConfig(
        _FIFTEEN_MINUTES, 10, "Too many login attempts. Please try again later."
    ),
    "/api/auth/rate-limit": RateLimitConfig(
        _MINUTE, 30, "Too many rate limit checks."
    ),
    # Lead capture forms
    "/api/contact": RateLimitConfig(
        _FIFTEEN_MINUTES,
        3,
        "Too many contact form submissions. Please try again later.",
    ),
    "/api/get-started": RateLimitConfig(
        _FIFTEEN_MINUTES, 3, "Too many project inquiries. Please try again later."
    ),
    # Admin
    "/api/admin/submissions": RateLimitConfig(
        _MINUTE, 60, "Too many requests to submissions."
    ),
    "/api/admin/assignments": RateLimitConfig(
        _MINUTE, 30, "Too many assignment updates."
    ),
    # Staff
    "/api/staff/assignments": RateLimitConfig(
        _MINUTE, 60, "Too many requests to staff assignments."
    ),
    # Utility
    "/api/csrf-token": RateLimitConfig(
        _MINUTE, 60, "Too many CSRF token requests."
    ),
    "/api/csp-report": RateLimitConfig(_MINUTE, 100, "Too many CSP reports."),
    "/api/health": RateLimitConfig(
        _MINUTE, 100, "Too many health check requests."
    ),
}


def get_rate_limit_config(
    endpoint: str,
    *,
    window_ms: Optional[int] = None,
    max_requests: Optional[int] = None,
    message: Optional[str] = None,
    key_generator: Optional[KeyGenerator] = None,
    on_limit_reached: Optional[LimitReachedHook] = None,
) -> RateLimitConfig:
    """
    Resolve the limits for ``endpoint``.

    Explicit arguments win over the endpoint table, which wins over the
    defaults (60 requests per minute).
    """
    base = ENDPOINT_RATE_LIMITS.get(endpoint)
    return RateLimitConfig(
        window_ms=window_ms
        if window_ms is not None
        else (base.window_ms if base else DEFAULT_WINDOW_MS),
        max_requests=max_requests
        if max_requests is not None
        else (base.max_requests if base else DEFAULT_MAX_REQUESTS),
        message=message or (base.message if base else DEFAULT_MESSAGE),
        key_generator=key_generator or (base.key_generator if base else None),
        on_limit_reached=on_limit_reached
        or (base.on_limit_reached if base else None),
    )


def get_client_identifier(request: Request) -> str:
    """Client IP: first X-Forwarded-For hop, then X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_user_identifier(request: Request, user_id: Optional[str] = None) -> str:
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_client_identifier(request)}"


def get_identifier(request: Request, key_generator: Optional[KeyGenerator] = None) -> str:
    if key_generator is not None:
        return key_generator(request)
    return get_client_identifier(request)


def build_key(config: RateLimitConfig, identifier: str) -> str:
    return f"rate-limit:{config.window_ms}:{config.max_requests}:{identifier}"
