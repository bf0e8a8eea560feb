"""
Request sessions.

A signed-in user holds a JWT in the session cookie (browsers) or sends it as
a bearer token (API clients). Sessions are stateless: revoking one means
clearing the cookie, and tokens expire after ``JWT_EXPIRES_MINUTES``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import Depends
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.security.auth.jwt_handler import InvalidTokenError, get_jwt_handler
from app.security.monitoring.security_metrics import AUTH_FAILURES_TOTAL
from app.utils.error_handler import AuthenticationError, AuthorizationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


class Role(str, Enum):
    USER = "USER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


ADMIN_ROLES = frozenset({Role.ADMIN.value, Role.SUPER_ADMIN.value})
STAFF_ROLES = ADMIN_ROLES | {Role.STAFF.value}


def is_admin(role: Optional[str]) -> bool:
    return role in ADMIN_ROLES


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)


def _candidate_tokens(request: Request) -> List[str]:
    """Session cookie first, then the bearer token."""
    tokens = []
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie:
        tokens.append(cookie)
    authorization = request.headers.get("authorization")
    if authorization and authorization.lower().startswith("bearer "):
        bearer = authorization.split(" ", 1)[1].strip()
        if bearer and bearer not in tokens:
            tokens.append(bearer)
    return tokens


def _verify(request: Request, token: str) -> Optional[Dict[str, Any]]:
    try:
        return get_jwt_handler().verify_token(token)
    except InvalidTokenError as e:
        AUTH_FAILURES_TOTAL.labels(reason="invalid_token").inc()
        logger.info("session_token_rejected", reason=str(e), path=request.url.path)
        return None


def get_session_user(request: Request) -> Optional[SessionUser]:
    """Decode the caller's session, or None when no token verifies."""
    payload = None
    for token in _candidate_tokens(request):
        payload = _verify(request, token)
        if payload is not None:
            break
    if payload is None:
        return None
    subject = payload.get("sub")
    return SessionUser(
        id=str(subject),
        email=payload.get("email"),
        role=payload.get("role") or Role.USER.value,
    )


def create_session_token(user_id: str, email: str, role: str) -> str:
    return get_jwt_handler().create_token(user_id, {"email": email, "role": role})


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=get_jwt_handler().max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def require_user(request: Request) -> SessionUser:
    user = get_session_user(request)
    if user is None:
        AUTH_FAILURES_TOTAL.labels(reason="missing_session").inc()
        raise AuthenticationError()
    return user


def require_admin(user: SessionUser = Depends(require_user)) -> SessionUser:
    if not user.is_admin:
        raise AuthorizationError("Forbidden - Admin access required")
    return user


def require_staff(user: SessionUser = Depends(require_user)) -> SessionUser:
    if user.role not in STAFF_ROLES:
        raise AuthorizationError("Forbidden - Staff access required")
    return user
