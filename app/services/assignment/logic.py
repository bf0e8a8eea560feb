from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from app.services.assignment.staff_directory import STAFF_DIRECTORY
from app.services.assignment.types import ProjectAssignmentResult, StaffMember
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "General Inquiry"


def analyze_and_assign_project(
    service_interests: Sequence[str],
    project_description: str,
    directory: Optional[Sequence[StaffMember]] = None,
) -> ProjectAssignmentResult:
    """
    Pick staff for a project inquiry.

    Staff are matched first on the selected services (substring either way
    against their primary services), then on skill keywords found in the
    description. Assigned staff keep first-match order and appear once.
    """
    staff_pool = STAFF_DIRECTORY if directory is None else directory
    description = project_description.lower()
    assigned: List[StaffMember] = []
    keywords: List[str] = []
    log: List[str] = [
        f"Starting analysis for {len(service_interests)} services and "
        f"description length {len(project_description)}"
    ]

    for service in service_interests:
        matches = [
            member
            for member in staff_pool
            if any(service in s or s in service for s in member.primary_services)
        ]
        if not matches:
            log.append(f"No direct staff match for service: {service}")
            continue
        for member in matches:
            if member not in assigned:
                assigned.append(member)
            log.append(f"Matched Service '{service}' to {member.role} ({member.name})")

    for member in staff_pool:
        for skill in member.skills:
            if skill.lower() not in description:
                continue
            if skill not in keywords:
                keywords.append(skill)
            if member not in assigned:
                assigned.append(member)
                log.append(f"Matched Keyword '{skill}' to {member.role} ({member.name})")

    if not assigned:
        log.append("No specific staff matched. Defaulting to general assignment.")

    result = ProjectAssignmentResult(
        assigned_staff=assigned,
        primary_category=service_interests[0] if service_interests else DEFAULT_CATEGORY,
        detected_keywords=keywords,
        confidence_score=0.9 if assigned else 0.1,
        analysis_log=log,
    )
    logger.info(
        "project_assigned",
        assigned=[m.id for m in assigned],
        primary_category=result.primary_category,
        keywords=len(keywords),
    )
    return result


def update_assigned_staff(
    assigned_staff: Optional[List[Dict[str, Any]]],
    member: StaffMember,
    action: str,
) -> List[Dict[str, Any]]:
    """
    Manual override of an inquiry's assignment.

    ``assign`` appends the member once; ``remove`` drops every entry with the
    member's email. Other entries keep their order.
    """
    current = list(assigned_staff or [])
    if action == "assign":
        if not any(s.get("email") == member.email for s in current):
            current.append(member.to_summary())
        return current
    if action == "remove":
        return [s for s in current if s.get("email") != member.email]
    raise ValueError(f"Unknown assignment action: {action}")
