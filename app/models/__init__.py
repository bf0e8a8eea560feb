from .submission import ContactSubmission, ProjectInquiry, SubmissionStatus
from .user import User

__all__ = [
    "User",
    "ContactSubmission",
    "ProjectInquiry",
    "SubmissionStatus",
]
