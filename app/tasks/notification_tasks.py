"""
Celery tasks that e-mail the team about new leads.

Form endpoints persist the submission first and then call
``enqueue_lead_notification``; a broker outage is logged and never turns a
saved submission into an error response.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any, Dict, List, Optional, Tuple

from app.core.celery_app import celery_app
from app.core.config import settings
from app.db.session import SessionLocal
from app.models.submission import ContactSubmission, ProjectInquiry
from app.security.validation.input_sanitizer import sanitize_html
from app.services.assignment import ADMIN_EMAIL
from app.utils.error_handler import NotificationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

CONTACT = "contact"
PROJECT_INQUIRY = "project_inquiry"
LEAD_KINDS = (CONTACT, PROJECT_INQUIRY)


def _row(label: str, value: Optional[str]) -> str:
    return f"<p><strong>{label}:</strong> {sanitize_html(value) or '-'}</p>"


def build_contact_email(submission: ContactSubmission) -> Tuple[str, str]:
    name = f"{submission.first_name} {submission.last_name}"
    subject = f"New contact form submission from {name}"
    body = "".join(
        [
            "<h2>New contact form submission</h2>",
            _row("Name", name),
            _row("Email", submission.email),
            _row("Phone", submission.phone),
            _row("Company", submission.company),
            _row("Reference", submission.reference),
            "<h3>Message</h3>",
            f"<p>{sanitize_html(submission.message)}</p>",
        ]
    )
    return subject, body


def build_inquiry_email(inquiry: ProjectInquiry) -> Tuple[str, str]:
    name = f"{inquiry.first_name} {inquiry.last_name}"
    subject = f"New project inquiry: {inquiry.primary_category or 'General Inquiry'} ({inquiry.company})"
    staff = ", ".join(
        f"{s.get('name')} ({s.get('role')})" for s in (inquiry.assigned_staff or [])
    )
    body = "".join(
        [
            "<h2>New project inquiry</h2>",
            _row("Name", name),
            _row("Company", inquiry.company),
            _row("Role", inquiry.role),
            _row("Email", inquiry.email),
            _row("Phone", inquiry.phone),
            _row("Preferred contact", inquiry.contact_method),
            _row("Services", ", ".join(inquiry.service_interests or [])),
            _row("Timeline", inquiry.timeline),
            _row("Budget", inquiry.budget),
            _row("Assigned to", staff or "Unassigned"),
            _row("Detected keywords", ", ".join(inquiry.detected_keywords or [])),
            _row("Reference", inquiry.reference),
            "<h3>Project description</h3>",
            f"<p>{sanitize_html(inquiry.project_description)}</p>",
        ]
    )
    return subject, body


def send_email(recipients: List[str], subject: str, html_body: str) -> None:
    if not settings.SMTP_HOST:
        raise NotificationError("SMTP_HOST is not configured")

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.SMTP_FROM_EMAIL or settings.SMTP_USER or ADMIN_EMAIL
    message["To"] = ", ".join(recipients)
    message.set_content("This message requires an HTML-capable mail client.")
    message.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
        smtp.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.send_message(message)


def _load(db, kind: str, submission_id: int):
    model = ContactSubmission if kind == CONTACT else ProjectInquiry
    return db.get(model, submission_id)


@celery_app.task(
    bind=True,
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    retry_backoff_max=300,
    max_retries=3,
)
def send_lead_notification(self, kind: str, submission_id: int) -> Dict[str, Any]:
    """Mail the team (and assigned staff, for inquiries) about a new lead."""
    if kind not in LEAD_KINDS:
        raise NotificationError(f"Unknown lead kind: {kind}")
    if not settings.NOTIFICATIONS_ENABLED:
        return {"status": "disabled"}

    db = SessionLocal()
    try:
        record = _load(db, kind, submission_id)
        if record is None:
            logger.warning("lead_notification_missing_record", kind=kind, submission_id=submission_id)
            return {"status": "missing"}

        recipients = [ADMIN_EMAIL]
        if kind == CONTACT:
            subject, body = build_contact_email(record)
        else:
            subject, body = build_inquiry_email(record)
            recipients += [e for e in record.assigned_emails() if e not in recipients]

        send_email(recipients, subject, body)
        logger.info(
            "lead_notification_sent",
            kind=kind,
            submission_id=submission_id,
            recipients=len(recipients),
            retry_count=self.request.retries,
        )
        return {"status": "sent", "recipients": recipients}
    finally:
        db.close()


def enqueue_lead_notification(kind: str, submission_id: int) -> bool:
    """Queue a notification; returns False when the broker is unreachable."""
    try:
        send_lead_notification.delay(kind, submission_id)
        return True
    except Exception as e:
        logger.error(
            "lead_notification_enqueue_failed",
            kind=kind,
            submission_id=submission_id,
            error=str(e),
        )
        return False
