import re

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.sql import func

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@as_declarative()
class Base:
    """Declarative base: integer key plus created/updated timestamps."""

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    __name__: str

    # ProjectInquiry -> project_inquirys unless the model names its table
    @declared_attr
    def __tablename__(cls) -> str:  # noqa: N805
        return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower() + "s"

    def timestamps(self) -> dict:
        return {
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
