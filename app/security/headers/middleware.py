from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.security.headers.csp import STATIC_SECURITY_HEADERS
from app.security.headers.https import get_https_enforcement_headers

API_CSP = "default-src 'none'; frame-ancestors 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Baseline hardening headers for every response.

    Page responses already carry a nonce-based policy from the site pipeline;
    ``setdefault`` leaves those untouched.
    """

    def __init__(self, app, *, api_prefix: str = "/api", api_csp: str | None = None):
        super().__init__(app)
        self.api_prefix = api_prefix
        self.api_csp = api_csp or API_CSP

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for key, value in STATIC_SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        for key, value in get_https_enforcement_headers().items():
            response.headers.setdefault(key, value)
        if request.url.path.startswith(self.api_prefix):
            response.headers.setdefault("Content-Security-Policy", self.api_csp)
        return response
