import asyncio

from fastapi.testclient import TestClient

from app.models.submission import ContactSubmission, ProjectInquiry

CONTACT = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "company": "Acme",
    "message": "Please call me about <b>a new site</b>.",
}

GET_STARTED = {
    "firstName": "Sam",
    "lastName": "Lee",
    "company": "Acme Corp",
    "email": "sam@acme.io",
    "role": "CTO",
    "projectDescription": "We need an iOS app and a kubernetes deployment.",
    "serviceInterests": ["Mobile App Development"],
    "contactMethod": "email",
    "timeline": "3 months",
    "budget": "$50k",
}


def test_contact_requires_csrf(client: TestClient, enqueue_mock):
    res = client.post("/api/contact", json=CONTACT)
    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "Invalid or missing CSRF token"}
    enqueue_mock.assert_not_called()


def test_contact_is_saved_and_queued(client: TestClient, csrf_headers, enqueue_mock, db_session):
    res = client.post("/api/contact", json=CONTACT, headers=csrf_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["reference"].startswith("jane-doe-")

    saved = db_session.get(ContactSubmission, body["id"])
    assert saved.email == "jane@example.com"
    assert "<" not in saved.message
    assert saved.status == "new"
    enqueue_mock.assert_called_once_with("contact", body["id"])


def test_contact_validation(client: TestClient, csrf_headers, enqueue_mock):
    res = client.post(
        "/api/contact", json={**CONTACT, "email": "nope"}, headers=csrf_headers
    )
    assert res.status_code == 400
    assert res.json()["errors"]
    enqueue_mock.assert_not_called()


def test_contact_rejects_non_object_body(client: TestClient, csrf_headers, enqueue_mock):
    res = client.post("/api/contact", json=["not", "an", "object"], headers=csrf_headers)
    assert res.status_code == 400


def test_contact_form_rate_limit(client: TestClient, csrf_headers, enqueue_mock):
    for _ in range(3):
        assert client.post("/api/contact", json=CONTACT, headers=csrf_headers).status_code == 200
    res = client.post("/api/contact", json=CONTACT, headers=csrf_headers)
    assert res.status_code == 429
    assert res.headers["X-RateLimit-Limit"] == "3"
    assert enqueue_mock.call_count == 3


def test_contact_succeeds_when_queue_is_down(client: TestClient, csrf_headers):
    from unittest.mock import patch

    with patch(
        "app.tasks.notification_tasks.send_lead_notification.delay",
        side_effect=ConnectionError("broker down"),
    ):
        res = client.post("/api/contact", json=CONTACT, headers=csrf_headers)
    assert res.status_code == 200


def test_get_started_assigns_staff(client: TestClient, csrf_headers, enqueue_mock, db_session):
    res = client.post("/api/get-started", json=GET_STARTED, headers=csrf_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["assignment"]["primaryCategory"] == "Mobile App Development"
    names = [s["name"] for s in body["assignment"]["assignedStaff"]]
    assert names == ["Marcus Johnson", "David Kim"]

    inquiry = db_session.get(ProjectInquiry, body["id"])
    assert inquiry.confidence_score == 0.9
    assert "kubernetes" in inquiry.detected_keywords
    assert inquiry.assigned_emails() == ["mobile@forgerdigital.com", "cloud@forgerdigital.com"]
    enqueue_mock.assert_called_once_with("project_inquiry", body["id"])


def test_get_started_requires_service_interest(client: TestClient, csrf_headers, enqueue_mock):
    res = client.post(
        "/api/get-started",
        json={**GET_STARTED, "serviceInterests": []},
        headers=csrf_headers,
    )
    assert res.status_code == 400


def test_persistence_and_enqueue_run_off_the_event_loop(client: TestClient, csrf_headers, enqueue_mock):
    loop_seen = []

    def record(kind, submission_id):
        try:
            asyncio.get_running_loop()
            loop_seen.append(True)
        except RuntimeError:
            loop_seen.append(False)
        return True

    enqueue_mock.side_effect = record
    assert client.post("/api/contact", json=CONTACT, headers=csrf_headers).status_code == 200
    assert client.post("/api/get-started", json=GET_STARTED, headers=csrf_headers).status_code == 200
    assert loop_seen == [False, False]
