"""Lead capture: the contact form and the get-started project inquiry."""

from __future__ import annotations

import asyncio
import secrets
from typing import Any, Dict, List, Tuple

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.submission import ContactSubmission, ProjectInquiry
from app.security.csrf import require_csrf_token
from app.security.rate_limit.policies import get_client_identifier
from app.security.rate_limit.service import enforce_rate_limit
from app.security.validation.schema_validator import parse_request_body
from app.security.validation.schemas import ContactForm, GetStartedForm
from app.services.assignment import ProjectAssignmentResult, analyze_and_assign_project
from app.tasks.notification_tasks import (
    CONTACT,
    PROJECT_INQUIRY,
    enqueue_lead_notification,
)
from app.utils.logger import get_logger
from app.utils.text import generate_slug

logger = get_logger(__name__)

router = APIRouter(tags=["leads"])

SUCCESS_MESSAGE = "Form submitted successfully. We'll get back to you within 24 hours."


def make_reference(*parts: str) -> str:
    """Readable unique reference such as ``acme-corp-jane-doe-1a2b3c4d``."""
    slug = generate_slug(" ".join(p for p in parts if p))[:100].strip("-")
    suffix = secrets.token_hex(4)
    return f"{slug}-{suffix}" if slug else suffix


def _contact_key(request: Request) -> str:
    return f"contact-form:{get_client_identifier(request)}"


def _get_started_key(request: Request) -> str:
    return f"get-started:{get_client_identifier(request)}"


@router.post(
    "/contact",
    dependencies=[
        Depends(require_csrf_token),
        Depends(enforce_rate_limit("/api/contact", key_generator=_contact_key)),
    ],
)
async def submit_contact(request: Request, db: Session = Depends(get_db)) -> dict:
    form = await parse_request_body(request, ContactForm)
    submission, queued = await asyncio.to_thread(_save_contact, db, form)
    logger.info(
        "contact_submission_saved",
        submission_id=submission.id,
        reference=submission.reference,
        notification_queued=queued,
    )
    return {
        "success": True,
        "message": SUCCESS_MESSAGE,
        "id": submission.id,
        "reference": submission.reference,
    }


def _save_contact(db: Session, form: ContactForm) -> Tuple[ContactSubmission, bool]:
    submission = ContactSubmission(
        first_name=form.first_name,
        last_name=form.last_name,
        email=form.email,
        phone=form.phone,
        company=form.company,
        message=form.message,
        reference=make_reference(form.first_name, form.last_name),
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission, enqueue_lead_notification(CONTACT, submission.id)


@router.post(
    "/get-started",
    dependencies=[
        Depends(require_csrf_token),
        Depends(enforce_rate_limit("/api/get-started", key_generator=_get_started_key)),
    ],
)
async def submit_get_started(request: Request, db: Session = Depends(get_db)) -> dict:
    form = await parse_request_body(request, GetStartedForm)
    assignment = analyze_and_assign_project(
        form.service_interests, form.project_description
    )
    summary = assignment.to_dict()
    inquiry, queued = await asyncio.to_thread(
        _save_inquiry, db, form, assignment, summary["assigned_staff"]
    )
    logger.info(
        "project_inquiry_saved",
        inquiry_id=inquiry.id,
        reference=inquiry.reference,
        assigned=len(assignment.assigned_staff),
        notification_queued=queued,
    )
    return {
        "success": True,
        "message": SUCCESS_MESSAGE,
        "id": inquiry.id,
        "reference": inquiry.reference,
        "assignment": {
            "primaryCategory": assignment.primary_category,
            "assignedStaff": [
                {"name": s["name"], "role": s["role"]} for s in summary["assigned_staff"]
            ],
        },
    }


def _save_inquiry(
    db: Session,
    form: GetStartedForm,
    assignment: ProjectAssignmentResult,
    assigned_staff: List[Dict[str, Any]],
) -> Tuple[ProjectInquiry, bool]:
    inquiry = ProjectInquiry(
        first_name=form.first_name,
        last_name=form.last_name,
        company=form.company,
        email=form.email,
        phone=form.phone,
        role=form.role,
        project_description=form.project_description,
        service_interests=form.service_interests,
        contact_method=form.contact_method,
        timeline=form.timeline,
        budget=form.budget,
        primary_category=assignment.primary_category,
        assigned_staff=assigned_staff,
        detected_keywords=assignment.detected_keywords,
        confidence_score=assignment.confidence_score,
        reference=make_reference(form.company),
    )
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)
    return inquiry, enqueue_lead_notification(PROJECT_INQUIRY, inquiry.id)
