from unittest.mock import patch

from fastapi.testclient import TestClient

REPORT = {
    "csp-report": {
        "document-uri": "https://forge.example/",
        "referrer": "",
        "violated-directive": "script-src-elem",
        "effective-directive": "script-src-elem",
        "original-policy": "default-src 'self'",
        "disposition": "enforce",
        "blocked-uri": "https://evil.example/x.js",
        "status-code": 200,
    }
}


def test_valid_report_is_acknowledged(client: TestClient):
    with patch("app.api.v1.csp_report.sentry_sdk.capture_message") as capture:
        res = client.post("/api/csp-report", json=REPORT)
    assert res.status_code == 204
    assert res.content == b""
    capture.assert_called_once()
    assert capture.call_args.kwargs["tags"]["directive"] == "script-src-elem"


def test_browser_content_type_is_accepted(client: TestClient):
    import json

    res = client.post(
        "/api/csp-report",
        content=json.dumps(REPORT),
        headers={"Content-Type": "application/csp-report"},
    )
    assert res.status_code == 204


def test_missing_report_key_is_rejected(client: TestClient):
    res = client.post("/api/csp-report", json={"something": "else"})
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid CSP report format"}


def test_malformed_json_still_returns_204(client: TestClient):
    res = client.post(
        "/api/csp-report",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 204


def test_csp_report_does_not_need_csrf(client: TestClient):
    client.cookies.clear()
    assert client.post("/api/csp-report", json=REPORT).status_code == 204


def test_usage_message(client: TestClient):
    res = client.get("/api/csp-report")
    assert res.json()["usage"] == "POST JSON with csp-report object"
