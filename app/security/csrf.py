"""
CSRF protection: signed double-submit tokens.

A token is ``<64 hex chars>.<hex HMAC-SHA256 of that part>``. The client
fetches it from ``/api/csrf-token`` (which also stores it in an httponly
cookie) and echoes it in the ``X-CSRF-Token`` header. A mutating request is
accepted when header and cookie match and the signature verifies.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.security.monitoring.security_metrics import BLOCKED_REQUESTS_TOTAL
from app.utils.error_handler import CsrfValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

CSRF_HEADER_NAME = "X-CSRF-Token"
PROTECTED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _sign(token_part: str) -> str:
    return hmac.new(
        settings.csrf_secret.encode(), token_part.encode(), hashlib.sha256
    ).hexdigest()


def generate_csrf_token() -> str:
    token_part = secrets.token_hex(32)
    return f"{token_part}.{_sign(token_part)}"


def validate_csrf_token(token: Optional[str]) -> bool:
    if not token or not isinstance(token, str):
        return False
    token_part, sep, signature = token.partition(".")
    if not sep or not token_part or not signature:
        return False
    return hmac.compare_digest(signature.encode(), _sign(token_part).encode())


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.CSRF_COOKIE_NAME,
        token,
        max_age=settings.CSRF_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def get_or_issue_csrf_token(request: Request, response: Response) -> str:
    """Reuse the caller's valid cookie token, or issue and set a new one."""
    token = request.cookies.get(settings.CSRF_COOKIE_NAME)
    if token and validate_csrf_token(token):
        return token
    token = generate_csrf_token()
    set_csrf_cookie(response, token)
    return token


def validate_csrf_from_request(request: Request, body_token: Optional[str] = None) -> bool:
    request_token = request.headers.get(CSRF_HEADER_NAME) or body_token
    if not request_token:
        return False
    cookie_token = request.cookies.get(settings.CSRF_COOKIE_NAME)
    if not cookie_token:
        return False
    if not hmac.compare_digest(request_token.encode(), cookie_token.encode()):
        return False
    return validate_csrf_token(request_token)


def require_csrf_token(request: Request) -> None:
    """FastAPI dependency guarding state-changing methods."""
    if request.method.upper() not in PROTECTED_METHODS:
        return
    if not validate_csrf_from_request(request):
        BLOCKED_REQUESTS_TOTAL.labels(control="csrf").inc()
        logger.warning(
            "csrf_rejected", method=request.method, path=request.url.path
        )
        raise CsrfValidationError()
