from __future__ import annotations

from typing import Dict

from starlette.requests import Request

from app.core.config import settings

_LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def is_https(request: Request) -> bool:
    return request.url.scheme == "https"


def should_enforce_https() -> bool:
    """HTTPS is enforced in production, or anywhere with FORCE_HTTPS."""
    return settings.is_production or settings.FORCE_HTTPS


def get_https_redirect_url(request: Request) -> str:
    return str(request.url.replace(scheme="https"))


def get_hsts_header() -> str:
    hsts = f"max-age={settings.HSTS_MAX_AGE}"
    if settings.HSTS_INCLUDE_SUBDOMAINS:
        hsts += "; includeSubDomains"
    if settings.HSTS_PRELOAD:
        hsts += "; preload"
    return hsts


def get_https_enforcement_headers() -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if should_enforce_https():
        headers["Strict-Transport-Security"] = get_hsts_header()
    return headers


def should_redirect_to_https(request: Request) -> bool:
    if not should_enforce_https():
        return False
    if is_https(request):
        return False
    if request.url.hostname in _LOCAL_HOSTS:
        # local production builds stay on http unless explicitly forced
        return settings.FORCE_HTTPS
    return True
