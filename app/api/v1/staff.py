from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.submission import ProjectInquiry
from app.security.auth.session import SessionUser, require_staff
from app.security.rate_limit.service import enforce_rate_limit

router = APIRouter(prefix="/staff", tags=["staff"])

MAX_RESULTS = 50
SCAN_BATCH_SIZE = 200


def serialize_inquiry(inquiry: ProjectInquiry) -> Dict[str, Any]:
    return {
        "id": inquiry.id,
        "reference": inquiry.reference,
        "firstName": inquiry.first_name,
        "lastName": inquiry.last_name,
        "company": inquiry.company,
        "email": inquiry.email,
        "serviceInterests": inquiry.service_interests or [],
        "primaryCategory": inquiry.primary_category,
        "assignedStaff": inquiry.assigned_staff or [],
        "detectedKeywords": inquiry.detected_keywords or [],
        "confidenceScore": inquiry.confidence_score,
        "status": inquiry.status,
        **inquiry.timestamps(),
    }


def _newest(db: Session):
    return db.query(ProjectInquiry).order_by(
        desc(ProjectInquiry.created_at), desc(ProjectInquiry.id)
    )


def _assigned_to(db: Session, email: str) -> List[ProjectInquiry]:
    """
    Newest inquiries whose assigned staff include ``email``.

    The JSON column is matched in Python to stay portable across backends, so
    rows are scanned in batches until enough matches are found.
    """
    matches: List[ProjectInquiry] = []
    offset = 0
    while len(matches) < MAX_RESULTS:
        batch = _newest(db).offset(offset).limit(SCAN_BATCH_SIZE).all()
        if not batch:
            break
        matches.extend(i for i in batch if email in i.assigned_emails())
        offset += SCAN_BATCH_SIZE
    return matches[:MAX_RESULTS]


@router.get(
    "/assignments",
    dependencies=[Depends(enforce_rate_limit("/api/staff/assignments"))],
)
def list_assignments(
    include_all: bool = Query(default=False, alias="all"),
    user: SessionUser = Depends(require_staff),
    db: Session = Depends(get_db),
) -> dict:
    """
    Recent project inquiries assigned to the caller.

    Admins may pass ``?all=true`` to see every recent inquiry.
    """
    if include_all and user.is_admin:
        selected = _newest(db).limit(MAX_RESULTS).all()
    else:
        selected = _assigned_to(db, (user.email or "").lower())
    return {
        "success": True,
        "submissions": [serialize_inquiry(i) for i in selected[:MAX_RESULTS]],
    }
