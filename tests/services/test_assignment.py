import pytest

from app.services.assignment import (
    STAFF_DIRECTORY,
    analyze_and_assign_project,
    find_staff_by_email,
    update_assigned_staff,
)


def _names(result):
    return [s.name for s in result.assigned_staff]


def test_service_match_assigns_every_owner_in_order():
    result = analyze_and_assign_project(["Data & Analytics"], "Nothing specific here.")
    assert _names(result) == ["Sarah Chen", "Elena Rodriguez"]
    assert result.primary_category == "Data & Analytics"
    assert result.confidence_score == 0.9


def test_partial_service_names_match_both_ways():
    result = analyze_and_assign_project(["DevOps"], "")
    assert _names(result) == ["David Kim"]


def test_keywords_add_staff_without_duplicates():
    result = analyze_and_assign_project(
        ["Custom Software Development"],
        "A PYTHON api with blockchain settlement.",
    )
    assert _names(result) == [
        "Alex Rivera",
        "Sarah Chen",
        "Elena Rodriguez",
        "Michael Chang",
    ]
    assert result.detected_keywords == ["python", "api", "ai", "blockchain"]
    assert len(set(_names(result))) == len(result.assigned_staff)


def test_no_match_falls_back_to_general_inquiry():
    result = analyze_and_assign_project([], "Hello there")
    assert result.assigned_staff == []
    assert result.primary_category == "General Inquiry"
    assert result.confidence_score == 0.1
    assert result.analysis_log[-1].startswith("No specific staff matched")


def test_unmatched_service_is_logged():
    result = analyze_and_assign_project(["Underwater Basket Weaving"], "")
    assert "No direct staff match for service: Underwater Basket Weaving" in result.analysis_log


def test_to_dict_summarizes_staff():
    data = analyze_and_assign_project(["Blockchain Development"], "").to_dict()
    assert data["assigned_staff"] == [
        {
            "id": "staff_007",
            "name": "Michael Chang",
            "role": "Blockchain Developer",
            "email": "blockchain@forgerdigital.com",
        }
    ]


def test_directory_lookup():
    assert len(STAFF_DIRECTORY) == 7
    assert find_staff_by_email("AI@forgerdigital.com").name == "Elena Rodriguez"
    assert find_staff_by_email("nobody@example.com") is None


def test_manual_assignment_adds_once_and_removes():
    mobile = find_staff_by_email("mobile@forgerdigital.com")
    cloud = find_staff_by_email("cloud@forgerdigital.com")

    staff = update_assigned_staff(None, mobile, "assign")
    staff = update_assigned_staff(staff, mobile, "assign")
    staff = update_assigned_staff(staff, cloud, "assign")
    assert [s["email"] for s in staff] == [mobile.email, cloud.email]
    assert staff[0] == mobile.to_summary()

    staff = update_assigned_staff(staff, mobile, "remove")
    assert [s["email"] for s in staff] == [cloud.email]
    assert update_assigned_staff(staff, mobile, "remove") == staff


def test_manual_assignment_rejects_unknown_action():
    with pytest.raises(ValueError):
        update_assigned_staff([], STAFF_DIRECTORY[0], "promote")
