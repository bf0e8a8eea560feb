import pytest
from fastapi.testclient import TestClient

from app.models.submission import ProjectInquiry
from app.security.auth.session import Role, create_session_token


def _bearer(email: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_session_token('s1', email, role)}"}


@pytest.fixture()
def inquiries(db_session):
    rows = [
        ProjectInquiry(
            first_name="A",
            last_name="One",
            company="Alpha",
            email="a@alpha.io",
            project_description="Mobile app please",
            service_interests=["Mobile App Development"],
            contact_method="email",
            assigned_staff=[{"id": "staff_003", "name": "Marcus Johnson", "role": "Mobile Lead", "email": "mobile@forgerdigital.com"}],
            reference="alpha-1",
        ),
        ProjectInquiry(
            first_name="B",
            last_name="Two",
            company="Beta",
            email="b@beta.io",
            project_description="Cloud migration",
            service_interests=["DevOps Automation"],
            contact_method="phone",
            assigned_staff=[{"id": "staff_004", "name": "David Kim", "role": "Cloud Architect", "email": "cloud@forgerdigital.com"}],
            reference="beta-1",
        ),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def test_requires_session(client: TestClient):
    assert client.get("/api/staff/assignments").status_code == 401


def test_regular_users_are_forbidden(client: TestClient):
    res = client.get("/api/staff/assignments", headers=_bearer("u@example.com", Role.USER.value))
    assert res.status_code == 403


def test_staff_see_their_assignments(client: TestClient, inquiries):
    res = client.get(
        "/api/staff/assignments",
        headers=_bearer("mobile@forgerdigital.com", Role.STAFF.value),
    )
    assert res.status_code == 200
    submissions = res.json()["submissions"]
    assert [s["reference"] for s in submissions] == ["alpha-1"]


def test_admin_can_list_everything(client: TestClient, inquiries):
    res = client.get(
        "/api/staff/assignments?all=true",
        headers=_bearer("admin@forgerdigital.com", Role.ADMIN.value),
    )
    assert {s["reference"] for s in res.json()["submissions"]} == {"alpha-1", "beta-1"}


def _inquiry(reference: str, staff_email: str) -> ProjectInquiry:
    return ProjectInquiry(
        first_name="C",
        last_name="Three",
        company="Gamma",
        email="c@gamma.io",
        project_description="Some project work",
        service_interests=["Web Development"],
        contact_method="email",
        assigned_staff=[{"id": "staff_x", "name": "Staff", "role": "Lead", "email": staff_email}],
        reference=reference,
    )


def test_older_assignments_are_found_past_newer_rows(client: TestClient, db_session):
    db_session.add(_inquiry("mobile-old", "mobile@forgerdigital.com"))
    db_session.commit()
    db_session.add_all(_inquiry(f"cloud-{n}", "cloud@forgerdigital.com") for n in range(250))
    db_session.commit()

    res = client.get(
        "/api/staff/assignments",
        headers=_bearer("mobile@forgerdigital.com", Role.STAFF.value),
    )
    assert res.status_code == 200
    assert [s["reference"] for s in res.json()["submissions"]] == ["mobile-old"]


def test_assignment_listing_is_capped(client: TestClient, db_session):
    db_session.add_all(_inquiry(f"mobile-{n}", "mobile@forgerdigital.com") for n in range(60))
    db_session.commit()

    res = client.get(
        "/api/staff/assignments",
        headers=_bearer("mobile@forgerdigital.com", Role.STAFF.value),
    )
    references = [s["reference"] for s in res.json()["submissions"]]
    assert len(references) == 50
    assert references[0] == "mobile-59"
