from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.user import User
from app.security.auth.passwords import hash_password, verify_password
from app.security.auth.session import (
    Role,
    SessionUser,
    clear_session_cookie,
    create_session_token,
    require_user,
    set_session_cookie,
)
from app.security.csrf import require_csrf_token
from app.security.monitoring.security_metrics import AUTH_FAILURES_TOTAL
from app.security.rate_limit.limiter import (
    RateLimitPresets,
    check_rate_limit,
    get_rate_limit_headers,
)
from app.security.rate_limit.policies import get_client_identifier
from app.security.rate_limit.service import enforce_rate_limit
from app.security.validation.schema_validator import parse_request_body
from app.security.validation.schemas import RateLimitCheck, SigninForm, SignupForm
from app.utils.error_handler import AuthenticationError, ConflictError
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"
BAD_CREDENTIALS_MESSAGE = "Invalid email or password"


def _signup_key(request: Request) -> str:
    return f"signup:{get_client_identifier(request)}"


def _signin_key(request: Request) -> str:
    return f"signin:{get_client_identifier(request)}"


@router.post(
    "/rate-limit", dependencies=[Depends(enforce_rate_limit("/api/auth/rate-limit"))]
)
async def rate_limit_check(request: Request) -> JSONResponse:
    """Count one hit against ``identifier`` using the standard preset."""
    body = await parse_request_body(request, RateLimitCheck)
    preset = RateLimitPresets.STANDARD
    result = check_rate_limit(body.identifier, preset.window_ms, preset.max_requests)
    return JSONResponse(
        content={
            "allowed": result.allowed,
            "remaining": result.remaining,
            "resetTime": int(result.reset_time),
        },
        headers=get_rate_limit_headers(result),
    )


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(require_csrf_token),
        Depends(enforce_rate_limit("/api/auth/signup", key_generator=_signup_key)),
    ],
)
async def signup(request: Request, db: Session = Depends(get_db)) -> dict:
    form = await parse_request_body(request, SignupForm)
    user = await asyncio.to_thread(_create_user, db, form)

    logger.info("user_signed_up", user_id=user.id)
    return {
        "success": True,
        "message": "Account created successfully",
        "user": {
            **user.to_public_dict(),
            "createdAt": user.timestamps()["createdAt"],
        },
    }


def _create_user(db: Session, form: SignupForm) -> User:
    """Hash and insert; runs off the event loop."""
    email = form.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        name=form.name,
        email=email,
        password_hash=hash_password(form.password),
        role=Role.USER.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)
    return user


@router.post(
    "/signin",
    dependencies=[
        Depends(require_csrf_token),
        Depends(enforce_rate_limit("/api/auth/signin", key_generator=_signin_key)),
    ],
)
async def signin(request: Request, db: Session = Depends(get_db)) -> JSONResponse:
    form = await parse_request_body(request, SigninForm)
    user = await asyncio.to_thread(_authenticate, db, form)
    if user is None:
        AUTH_FAILURES_TOTAL.labels(reason="bad_credentials").inc()
        logger.warning("signin_failed", client_ip=get_client_identifier(request))
        raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)

    response = JSONResponse(content={"success": True, "user": user.to_public_dict()})
    set_session_cookie(response, create_session_token(user.id, user.email, user.role))
    logger.info("user_signed_in", user_id=user.id)
    return response


def _authenticate(db: Session, form: SigninForm) -> Optional[User]:
    """Look up and bcrypt-check the credentials; runs off the event loop."""
    user = db.query(User).filter(User.email == form.email.lower()).first()
    if user is None or not verify_password(form.password, user.password_hash):
        return None
    return user


@router.post("/signout", dependencies=[Depends(require_csrf_token)])
def signout() -> JSONResponse:
    response = JSONResponse(content={"success": True})
    clear_session_cookie(response)
    return response


@router.get("/session")
def current_session(user: SessionUser = Depends(require_user)) -> dict:
    return {
        "success": True,
        "user": {"id": user.id, "email": user.email, "role": user.role},
        "isAdmin": user.is_admin,
    }
