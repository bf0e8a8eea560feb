from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from app.core.config import settings
from app.security.auth.session import Role, SessionUser, create_session_token
from app.security.headers.csp import is_valid_nonce
from app.security.pipeline import evaluate_request, matches_pipeline


def make_request(path: str, scheme: str = "http", host: str = "forge.example"):
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "server": (host, 443 if scheme == "https" else 80),
        "path": path,
        "query_string": b"",
        "headers": [(b"host", host.encode())],
    }
    return Request(scope)


USER = SessionUser(id="u1", email="u1@example.com", role=Role.USER.value)
ADMIN = SessionUser(id="a1", email="a1@example.com", role=Role.ADMIN.value)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/", True),
        ("/dashboard", True),
        ("/admin/users", True),
        ("/api/contact", False),
        ("/_next/static/chunk.js", False),
        ("/_next/image", False),
        ("/favicon.ico", False),
        ("/logo.svg", False),
        ("/images/team/photo.JPG", False),
        ("/metrics", False),
    ],
)
def test_matcher(path, expected):
    assert matches_pipeline(path) is expected


@pytest.fixture()
def plain_http(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "test")
    monkeypatch.setattr(settings, "FORCE_HTTPS", False)


class TestEvaluateRequest:
    def test_anonymous_protected_page_redirects_to_signin(self, plain_http):
        decision = evaluate_request(make_request("/dashboard"), None)
        assert decision.status_code == 307
        parts = urlsplit(decision.redirect_to)
        assert parts.path == "/auth/signin"
        assert parse_qs(parts.query) == {"callbackUrl": ["/dashboard"]}

    def test_signed_in_user_leaves_auth_pages(self, plain_http):
        decision = evaluate_request(make_request("/auth/signin"), USER)
        assert urlsplit(decision.redirect_to).path == "/dashboard"

    def test_non_admin_is_sent_away_from_admin(self, plain_http):
        decision = evaluate_request(make_request("/admin"), USER)
        assert urlsplit(decision.redirect_to).path == "/dashboard"
        assert decision.reason == "not_admin"

    def test_admin_reaches_admin(self, plain_http):
        assert evaluate_request(make_request("/admin/settings"), ADMIN).should_continue

    def test_public_page_continues(self, plain_http):
        assert evaluate_request(make_request("/"), None).should_continue

    def test_https_redirect_precedes_route_protection(self, monkeypatch):
        monkeypatch.setattr(settings, "APP_ENV", "production")
        decision = evaluate_request(make_request("/dashboard"), None)
        assert decision.status_code == 301
        assert decision.redirect_to == "https://forge.example/dashboard"


class TestSitePolicyMiddleware:
    def test_public_page_gets_nonce_and_headers(self, client: TestClient, plain_http):
        res = client.get("/")
        assert res.status_code == 200
        nonce = res.headers["X-CSP-Nonce"]
        assert is_valid_nonce(nonce)
        assert f"'nonce-{nonce}'" in res.headers["Content-Security-Policy"]
        assert "report-uri http://testserver/api/csp-report" in res.headers["Content-Security-Policy"]
        assert f'nonce="{nonce}"' in res.text
        assert res.headers["X-Frame-Options"] == "DENY"

    def test_nonce_changes_per_request(self, client: TestClient, plain_http):
        first = client.get("/").headers["X-CSP-Nonce"]
        second = client.get("/").headers["X-CSP-Nonce"]
        assert first != second

    def test_protected_page_redirects_anonymous(self, client: TestClient, plain_http):
        res = client.get("/settings", follow_redirects=False)
        assert res.status_code == 307
        assert res.headers["location"] == "http://testserver/auth/signin?callbackUrl=%2Fsettings"

    def test_signed_in_user_sees_dashboard(self, client: TestClient, plain_http):
        token = create_session_token("u1", "u1@example.com", Role.USER.value)
        res = client.get(
            "/dashboard",
            headers={"Authorization": f"Bearer {token}"},
            follow_redirects=False,
        )
        assert res.status_code == 200
        assert "u1@example.com" in res.text

    def test_forced_https_redirects_with_301(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "FORCE_HTTPS", True)
        res = client.get("/profile?tab=1", follow_redirects=False)
        assert res.status_code == 301
        assert res.headers["location"] == "https://testserver/profile?tab=1"

    def test_api_routes_skip_the_pipeline(self, client: TestClient, plain_http):
        res = client.get("/api/health")
        assert "X-CSP-Nonce" not in res.headers
        assert res.headers["Content-Security-Policy"] == "default-src 'none'; frame-ancestors 'none'"
