import base64

import pytest

from app.core.config import settings
from app.security.headers.csp import (
    STATIC_SECURITY_HEADERS,
    build_csp_policy,
    generate_nonce,
    get_security_headers,
    is_valid_nonce,
)

NONCE = base64.b64encode(b"0123456789abcdef").decode()


def _directives(policy: str) -> list:
    return [d.split(" ", 1)[0] for d in policy.split("; ")]


def test_generate_nonce_is_base64_of_16_bytes():
    nonce = generate_nonce()
    assert len(nonce) == 24
    assert len(base64.b64decode(nonce)) == 16
    assert is_valid_nonce(nonce)


def test_nonces_differ():
    assert len({generate_nonce() for _ in range(50)}) == 50


@pytest.mark.parametrize(
    "nonce,expected",
    [
        (NONCE, True),
        (base64.b64encode(b"x" * 32).decode(), True),
        (base64.b64encode(b"short").decode(), False),
        (base64.b64encode(b"x" * 33).decode(), False),
        ("not base64!", False),
        ("", False),
    ],
)
def test_is_valid_nonce(nonce, expected):
    assert is_valid_nonce(nonce) is expected


def test_policy_directive_order_and_nonce(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "test")
    policy = build_csp_policy(NONCE, "https://example.com/api/csp-report")

    assert _directives(policy) == [
        "default-src",
        "script-src",
        "style-src",
        "img-src",
        "font-src",
        "connect-src",
        "frame-src",
        "frame-ancestors",
        "object-src",
        "media-src",
        "worker-src",
        "manifest-src",
        "base-uri",
        "form-action",
        "report-uri",
    ]
    assert f"'nonce-{NONCE}'" in policy
    assert "'strict-dynamic'" in policy
    assert "'unsafe-eval'" not in policy
    assert "object-src 'none'" in policy
    assert policy.endswith("report-uri https://example.com/api/csp-report")


def test_development_policy_relaxes_scripts(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "development")
    policy = build_csp_policy(NONCE)
    script_src = next(d for d in policy.split("; ") if d.startswith("script-src"))
    assert "'unsafe-eval'" in script_src
    assert "'unsafe-inline'" in script_src
    assert "report-uri" not in policy


def test_production_upgrades_insecure_requests(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")
    policy = build_csp_policy(NONCE, "https://example.com/api/csp-report")
    assert _directives(policy)[-2:] == ["upgrade-insecure-requests", "report-uri"]


def test_connect_src_includes_public_url(monkeypatch):
    monkeypatch.setattr(settings, "PUBLIC_URL", "https://forge.example")
    policy = build_csp_policy(NONCE)
    connect_src = next(d for d in policy.split("; ") if d.startswith("connect-src"))
    assert connect_src.endswith("https://forge.example")


def test_disabled_csp_returns_empty_policy(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_CSP", True)
    assert build_csp_policy(NONCE) == ""


def test_security_headers_enforce_mode(monkeypatch):
    monkeypatch.setattr(settings, "CSP_REPORT_ONLY", False)
    headers = get_security_headers(NONCE)
    assert "Content-Security-Policy" in headers
    assert "Content-Security-Policy-Report-Only" not in headers
    for key, value in STATIC_SECURITY_HEADERS.items():
        assert headers[key] == value
    assert "Strict-Transport-Security" not in headers


def test_security_headers_report_only_mode(monkeypatch):
    monkeypatch.setattr(settings, "CSP_REPORT_ONLY", True)
    headers = get_security_headers(NONCE)
    assert "Content-Security-Policy" not in headers
    assert f"'nonce-{NONCE}'" in headers["Content-Security-Policy-Report-Only"]
