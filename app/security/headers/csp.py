"""
Content-Security-Policy construction.

The policy is rebuilt for every page response around a fresh nonce so that
only inline scripts and styles rendered with that nonce execute.
"""

from __future__ import annotations

import base64
import binascii
import secrets
from enum import Enum
from typing import Dict, List, Optional

from app.core.config import settings

NONCE_BYTES = 16

CSP_ALLOWED_DOMAINS: Dict[str, List[str]] = {
    "scripts": [
        "'self'",
        "https://va.vercel-scripts.com",
        "https://js.stripe.com",
        "https://browser.sentry.io",
        "https://*.sentry.io",
        "https://www.googletagmanager.com",
        "https://www.google-analytics.com",
    ],
    "styles": [
        "'self'",
        "https://fonts.googleapis.com",
        "https://fonts.gstatic.com",
    ],
    "images": [
        "'self'",
        "data:",
        "blob:",
        "https:",
        "http:",
        "https://my.spline.design",
        "https://*.spline.design",
    ],
    "fonts": [
        "'self'",
        "data:",
        "https://fonts.gstatic.com",
        "https://fonts.googleapis.com",
    ],
    "connect": [
        "'self'",
        "https://api.stripe.com",
        "https://*.stripe.com",
        "https://*.sentry.io",
        "https://*.supabase.co",
        "wss://*.supabase.co",
        "https://www.google-analytics.com",
        "https://*.google-analytics.com",
        "https://*.analytics.google.com",
    ],
    "frames": [
        "'self'",
        "https://my.spline.design",
        "https://*.spline.design",
        "https://js.stripe.com",
        "https://hooks.stripe.com",
    ],
}

STATIC_SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), interest-cohort=()",
}


class CSPMode(str, Enum):
    ENFORCE = "enforce"
    REPORT_ONLY = "report-only"


def get_csp_mode() -> CSPMode:
    return CSPMode.REPORT_ONLY if settings.CSP_REPORT_ONLY else CSPMode.ENFORCE


def is_csp_enabled() -> bool:
    return not settings.DISABLE_CSP


def generate_nonce() -> str:
    """16 random bytes, standard base64 (24 characters)."""
    return base64.b64encode(secrets.token_bytes(NONCE_BYTES)).decode("ascii")


def is_valid_nonce(nonce: str) -> bool:
    """A nonce must be base64 for 16 to 32 bytes."""
    if not nonce:
        return False
    try:
        decoded = base64.b64decode(nonce, validate=True)
    except (binascii.Error, ValueError):
        return False
    return 16 <= len(decoded) <= 32


def build_csp_policy(nonce: str, report_uri: Optional[str] = None) -> str:
    """Return the policy string for ``nonce``, or "" when CSP is disabled."""
    if not is_csp_enabled():
        return ""

    domains = CSP_ALLOWED_DOMAINS
    directives = ["default-src 'self'"]

    script_src = f"script-src 'self' 'nonce-{nonce}' 'strict-dynamic'"
    if settings.is_development:
        # dev tooling evaluates and injects scripts
        script_src += " 'unsafe-eval' 'unsafe-inline'"
    directives.append(f"{script_src} {' '.join(domains['scripts'])}")

    directives.append(
        f"style-src 'self' 'nonce-{nonce}' {' '.join(domains['styles'])} 'unsafe-inline'"
    )
    directives.append(f"img-src {' '.join(domains['images'])}")
    directives.append(f"font-src {' '.join(domains['fonts'])}")
    directives.append(
        f"connect-src {' '.join(domains['connect'] + [settings.PUBLIC_URL])}"
    )
    directives.append(f"frame-src {' '.join(domains['frames'])}")
    directives.extend(
        [
            "frame-ancestors 'self'",
            "object-src 'none'",
            "media-src 'self' data: blob:",
            "worker-src 'self' blob:",
            "manifest-src 'self'",
            "base-uri 'self'",
            "form-action 'self'",
        ]
    )

    if settings.is_production:
        directives.append("upgrade-insecure-requests")

    if report_uri:
        directives.append(f"report-uri {report_uri}")

    return "; ".join(directives)


def get_security_headers(
    nonce: str, report_uri: Optional[str] = None
) -> Dict[str, str]:
    """
    CSP (or its report-only variant) plus the fixed hardening headers.

    HSTS is not included; it comes from ``https.get_https_enforcement_headers``.
    """
    headers: Dict[str, str] = {}
    policy = build_csp_policy(nonce, report_uri)
    if get_csp_mode() is CSPMode.REPORT_ONLY:
        headers["Content-Security-Policy-Report-Only"] = policy
    else:
        headers["Content-Security-Policy"] = policy
    headers.update(STATIC_SECURITY_HEADERS)
    return headers
