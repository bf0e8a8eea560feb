"""
Site request pipeline for page routes.

Every page request passes a short, linear policy chain:

1. resolve the session (auth check)
2. redirect plain HTTP to HTTPS (301) when enforcement is on
3. send signed-in users away from the sign-in/sign-up pages
4. send anonymous users on protected pages to sign-in with a callback URL
5. send non-admins away from admin pages
6. generate the CSP nonce and attach the security headers to the response

API routes, static assets and images are not matched; they get the baseline
headers from ``SecurityHeadersMiddleware`` and their own route guards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from starlette.datastructures import URL
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.security.auth.session import SessionUser, get_session_user, is_admin
from app.security.headers.csp import generate_nonce, get_security_headers
from app.security.headers.https import (
    get_https_enforcement_headers,
    get_https_redirect_url,
    should_redirect_to_https,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

PROTECTED_ROUTES: Sequence[str] = ("/dashboard", "/admin", "/profile", "/settings")
ADMIN_ROUTES: Sequence[str] = ("/admin",)
AUTH_ROUTES: Sequence[str] = ("/auth/signin", "/auth/signup")

SIGNIN_PATH = "/auth/signin"
DASHBOARD_PATH = "/dashboard"
CSP_REPORT_PATH = "/api/csp-report"
NONCE_HEADER = "X-CSP-Nonce"

EXCLUDED_PREFIXES: Sequence[str] = (
    "/api",
    "/_next/static",
    "/_next/image",
    "/static",
    "/favicon.ico",
    "/metrics",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)
_IMAGE_SUFFIX = re.compile(r".*\.(?:svg|png|jpg|jpeg|gif|webp)$", re.IGNORECASE)


def matches_pipeline(path: str) -> bool:
    """True for page paths; API routes, static files and images are skipped."""
    if any(path.startswith(prefix) for prefix in EXCLUDED_PREFIXES):
        return False
    return not _IMAGE_SUFFIX.match(path)


@dataclass(frozen=True)
class PipelineDecision:
    redirect_to: Optional[str] = None
    status_code: int = 307
    reason: Optional[str] = None

    @property
    def should_continue(self) -> bool:
        return self.redirect_to is None


CONTINUE = PipelineDecision()


def _redirect(request: Request, path: str, reason: str, **params: str) -> PipelineDecision:
    url = URL(str(request.base_url)).replace(path=path, query="")
    if params:
        url = url.include_query_params(**params)
    return PipelineDecision(redirect_to=str(url), status_code=307, reason=reason)


def evaluate_request(request: Request, user: Optional[SessionUser]) -> PipelineDecision:
    """Run the redirect/route-protection steps without touching the response."""
    path = request.url.path
    is_authenticated = user is not None
    role = user.role if user else "USER"

    if should_redirect_to_https(request):
        return PipelineDecision(
            redirect_to=get_https_redirect_url(request),
            status_code=301,
            reason="https",
        )

    if path in AUTH_ROUTES and is_authenticated:
        return _redirect(request, DASHBOARD_PATH, "already_authenticated")

    if any(path.startswith(route) for route in PROTECTED_ROUTES):
        if not is_authenticated:
            return _redirect(request, SIGNIN_PATH, "unauthenticated", callbackUrl=path)
        if any(path.startswith(route) for route in ADMIN_ROUTES) and not is_admin(role):
            return _redirect(request, DASHBOARD_PATH, "not_admin")

    return CONTINUE


def csp_report_uri(request: Request) -> str:
    origin = str(request.base_url).rstrip("/")
    return f"{origin}{CSP_REPORT_PATH}"


class SitePolicyMiddleware(BaseHTTPMiddleware):
    """Applies the page pipeline; see the module docstring for the order."""

    def __init__(
        self,
        app,
        *,
        matcher: Callable[[str], bool] = matches_pipeline,
        nonce_factory: Callable[[], str] = generate_nonce,
    ):
        super().__init__(app)
        self.matcher = matcher
        self.nonce_factory = nonce_factory

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.matcher(request.url.path):
            return await call_next(request)

        user = get_session_user(request)
        request.state.user = user

        decision = evaluate_request(request, user)
        if not decision.should_continue:
            logger.info(
                "site_pipeline_redirect",
                path=request.url.path,
                reason=decision.reason,
                status_code=decision.status_code,
            )
            return RedirectResponse(decision.redirect_to, status_code=decision.status_code)

        nonce = self.nonce_factory()
        request.state.csp_nonce = nonce

        response = await call_next(request)

        headers = dict(get_security_headers(nonce, csp_report_uri(request)))
        headers.update(get_https_enforcement_headers())
        for key, value in headers.items():
            if value:
                response.headers[key] = value
        response.headers[NONCE_HEADER] = nonce
        return response
