"""User model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from campus_events.database import Base

ROLE_ADMIN = "ADMIN"
ROLE_STUDENT = "STUDENT"
ROLES = (ROLE_ADMIN, ROLE_STUDENT)


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable across SQLite and Postgres columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Represents a student or administrator account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash
    role = Column(String, nullable=False, default=ROLE_STUDENT)
    department = Column(String, nullable=True)
    student_id = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
