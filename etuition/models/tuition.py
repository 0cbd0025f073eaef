"""Tuition post model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from etuition.database import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_ONGOING = "ongoing"
STATUS_CLOSED = "closed"
ADMIN_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_CLOSED)


class TuitionPost(Base):
    """A student's listing describing a tutoring need."""
    __tablename__ = "tuition_posts"

    id = Column(Integer, primary_key=True, index=True)
    student_email = Column(String, index=True, nullable=False)
    subject = Column(String, nullable=False)
    class_name = Column("class", String)
    location = Column(String)
    salary = Column(Integer)
    days_per_week = Column(Integer)
    gender_preference = Column(String)
    description = Column(Text)
    status = Column(String, index=True, nullable=False, default=STATUS_PENDING)
    assigned_tutor_email = Column(String, index=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def title(self) -> str:
        return f"{self.subject} (Class {self.class_name})"
