"""
Minimal server-rendered pages.

They exist so the page pipeline has real routes to guard; every inline
script carries the per-request CSP nonce.
"""

from __future__ import annotations

import html

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from app.core.config import settings

router = APIRouter(include_in_schema=False)

_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title} | {app_name}</title>
</head>
<body>
<main><h1>{title}</h1>{body}</main>
<script nonce="{nonce}">window.__CSP_NONCE__ = "{nonce}";</script>
</body>
</html>
"""


def render_page(request: Request, title: str, body: str = "") -> HTMLResponse:
    nonce = getattr(request.state, "csp_nonce", "")
    content = _TEMPLATE.format(
        title=html.escape(title),
        app_name=html.escape(settings.APP_NAME),
        body=body,
        nonce=html.escape(nonce),
    )
    return HTMLResponse(content)


def _greeting(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is None or not user.email:
        return ""
    return f"<p>Signed in as {html.escape(user.email)}</p>"


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    return render_page(request, "Home")


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request) -> HTMLResponse:
    return render_page(request, "Dashboard", _greeting(request))


@router.get("/admin", response_class=HTMLResponse)
def admin(request: Request) -> HTMLResponse:
    return render_page(request, "Admin", _greeting(request))


@router.get("/profile", response_class=HTMLResponse)
def profile(request: Request) -> HTMLResponse:
    return render_page(request, "Profile", _greeting(request))


@router.get("/settings", response_class=HTMLResponse)
def account_settings(request: Request) -> HTMLResponse:
    return render_page(request, "Settings", _greeting(request))


@router.get("/auth/signin", response_class=HTMLResponse)
def signin_page(request: Request) -> HTMLResponse:
    return render_page(request, "Sign in")


@router.get("/auth/signup", response_class=HTMLResponse)
def signup_page(request: Request) -> HTMLResponse:
    return render_page(request, "Sign up")
