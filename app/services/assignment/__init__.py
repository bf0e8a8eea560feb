"""Routes project inquiries to the staff members best placed to answer them."""

from app.services.assignment.logic import (
    analyze_and_assign_project,
    update_assigned_staff,
)
from app.services.assignment.staff_directory import (
    ADMIN_EMAIL,
    STAFF_DIRECTORY,
    find_staff_by_email,
)
from app.services.assignment.types import ProjectAssignmentResult, StaffMember

__all__ = [
    "ADMIN_EMAIL",
    "STAFF_DIRECTORY",
    "ProjectAssignmentResult",
    "StaffMember",
    "analyze_and_assign_project",
    "find_staff_by_email",
    "update_assigned_staff",
]
