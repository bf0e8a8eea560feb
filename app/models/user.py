import uuid

from sqlalchemy import Column, String

from app.db.base_class import Base
from app.security.auth.session import Role


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)

    def to_public_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}
