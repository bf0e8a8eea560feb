# Import all the models, so that Base has them before being
# imported by Alembic
from app.db.base_class import Base
from app.models.submission import ContactSubmission, ProjectInquiry
from app.models.user import User

__all__ = ["Base", "User", "ContactSubmission", "ProjectInquiry"]  # noqa: F401
