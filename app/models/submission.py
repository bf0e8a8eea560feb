"""Lead capture records from the contact and get-started forms."""

import enum

from sqlalchemy import JSON, Column, Float, String, Text

from app.db.base_class import Base


class SubmissionStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    ARCHIVED = "archived"


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(30))
    company = Column(String(200))
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=SubmissionStatus.NEW.value)
    reference = Column(String(120), nullable=False, unique=True)


class ProjectInquiry(Base):
    __tablename__ = "project_inquiries"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(30))
    role = Column(String(100))
    project_description = Column(Text, nullable=False)
    service_interests = Column(JSON, nullable=False)
    contact_method = Column(String(20), nullable=False)
    timeline = Column(String(100))
    budget = Column(String(100))

    # Staff assignment snapshot
    primary_category = Column(String(200))
    assigned_staff = Column(JSON)  # [{id, name, role, email}]
    detected_keywords = Column(JSON)
    confidence_score = Column(Float)

    status = Column(String(20), nullable=False, default=SubmissionStatus.NEW.value)
    reference = Column(String(120), nullable=False, unique=True)

    def assigned_emails(self) -> list:
        return [s.get("email") for s in (self.assigned_staff or []) if s.get("email")]
