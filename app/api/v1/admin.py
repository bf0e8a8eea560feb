"""Admin tools: browse lead submissions and override staff assignments."""

from __future__ import annotations

import asyncio
import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from app.api.v1.staff import serialize_inquiry
from app.db.session import get_db
from app.models.submission import ContactSubmission, ProjectInquiry
from app.security.auth.session import SessionUser, get_session_user, require_admin
from app.security.csrf import require_csrf_token
from app.security.rate_limit.policies import get_user_identifier
from app.security.rate_limit.service import enforce_rate_limit
from app.security.validation.schema_validator import parse_body, parse_request_body
from app.security.validation.schemas import AdminSubmissionsQuery, AssignmentUpdate
from app.services.assignment import find_staff_by_email, update_assigned_staff
from app.utils.error_handler import NotFoundError, RequestValidationFailed
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

SUBMISSION_TYPES = {"contact": ContactSubmission, "get-started": ProjectInquiry}


def _admin_key(request: Request) -> str:
    user = get_session_user(request)
    return get_user_identifier(request, user.id if user else None)


def serialize_contact(submission: ContactSubmission) -> Dict[str, Any]:
    return {
        "id": submission.id,
        "reference": submission.reference,
        "firstName": submission.first_name,
        "lastName": submission.last_name,
        "email": submission.email,
        "phone": submission.phone,
        "company": submission.company,
        "message": submission.message,
        "status": submission.status,
        **submission.timestamps(),
    }


_SERIALIZERS = {"contact": serialize_contact, "get-started": serialize_inquiry}


def _filtered(db: Session, model, search: Optional[str]):
    query = db.query(model)
    if search:
        query = query.filter(
            or_(
                model.first_name.icontains(search, autoescape=True),
                model.last_name.icontains(search, autoescape=True),
                model.email.icontains(search, autoescape=True),
                model.company.icontains(search, autoescape=True),
            )
        )
    return query


@router.get(
    "/submissions",
    dependencies=[
        Depends(require_admin),
        Depends(enforce_rate_limit("/api/admin/submissions", key_generator=_admin_key)),
    ],
)
def list_submissions(request: Request, db: Session = Depends(get_db)) -> dict:
    """
    Paginated contact and get-started submissions, newest first.

    ``type=all`` merges both tables and tags each row with its ``type``.
    ``search`` matches names, email and company case-insensitively.
    """
    try:
        params = parse_body(dict(request.query_params), AdminSubmissionsQuery)
    except RequestValidationFailed as e:
        raise RequestValidationFailed(e.errors, message="Invalid query parameters") from e

    skip = (params.page - 1) * params.limit
    kinds = list(SUBMISSION_TYPES) if params.type == "all" else [params.type]

    rows: List[Dict[str, Any]] = []
    total = 0
    for kind in kinds:
        model = SUBMISSION_TYPES[kind]
        query = _filtered(db, model, params.search)
        total += query.with_entities(func.count(model.id)).scalar() or 0
        ordered = query.order_by(desc(model.created_at), desc(model.id))
        if params.type == "all":
            # Each table contributes up to skip + limit rows to the merged page
            batch = ordered.limit(skip + params.limit).all()
        else:
            batch = ordered.offset(skip).limit(params.limit).all()
        for row in batch:
            item = _SERIALIZERS[kind](row)
            if params.type == "all":
                item["type"] = kind
            rows.append(item)

    if params.type == "all":
        rows.sort(key=lambda r: (r["createdAt"] or "", r["id"]), reverse=True)
        rows = rows[skip : skip + params.limit]

    return {
        "success": True,
        "submissions": rows,
        "pagination": {
            "page": params.page,
            "limit": params.limit,
            "total": total,
            "totalPages": math.ceil(total / params.limit),
        },
    }


@router.post(
    "/assignments",
    dependencies=[
        Depends(require_csrf_token),
        Depends(require_admin),
        Depends(enforce_rate_limit("/api/admin/assignments", key_generator=_admin_key)),
    ],
)
async def update_assignment(
    request: Request,
    admin: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """Manually assign a directory staff member to an inquiry, or remove them."""
    try:
        form = await parse_request_body(request, AssignmentUpdate)
    except RequestValidationFailed as e:
        if any(err.get("type") == "missing" for err in e.errors):
            raise RequestValidationFailed(e.errors, message="Missing required fields") from e
        raise

    inquiry = await asyncio.to_thread(_apply_assignment, db, form)
    logger.info(
        "assignment_updated",
        submission_id=inquiry.id,
        staff_email=form.staff_email,
        action=form.action,
        admin_id=admin.id,
    )
    return {"success": True, "data": serialize_inquiry(inquiry)}


def _apply_assignment(db: Session, form: AssignmentUpdate) -> ProjectInquiry:
    inquiry = db.get(ProjectInquiry, form.submission_id)
    if inquiry is None:
        raise NotFoundError("Submission not found")
    member = find_staff_by_email(form.staff_email)
    if member is None:
        raise NotFoundError("Staff member not found in directory")

    inquiry.assigned_staff = update_assigned_staff(
        inquiry.assigned_staff, member, form.action
    )
    db.commit()
    db.refresh(inquiry)
    return inquiry
