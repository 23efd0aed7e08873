"""Event model definitions."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship

from campus_events.database import Base
from campus_events.models.user import utcnow

DEPARTMENTS = {
    "CS": "Computer Science",
    "SE": "Software Engineering",
    "IS": "Information Systems",
}


class Event(Base):
    """Represents a scheduled departmental activity."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    event_time = Column(Time, nullable=True)
    location = Column(String, nullable=True)
    departments = Column(JSON, nullable=True)
    registration_needed = Column(Boolean, default=False, nullable=False)
    registration_link = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    cover_color = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    creator = relationship("User", lazy="joined")
