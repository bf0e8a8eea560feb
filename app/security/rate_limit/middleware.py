from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.security.rate_limit.service import RATE_LIMIT_HEADERS_STATE


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """Copies the rate-limit headers computed by the route dependency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        headers = getattr(request.state, RATE_LIMIT_HEADERS_STATE, None)
        if headers:
            for key, value in headers.items():
                response.headers.setdefault(key, value)
        return response
