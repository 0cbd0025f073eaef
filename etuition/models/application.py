"""Tutor application model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from etuition.database import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class Application(Base):
    """A tutor's bid on a tuition post."""
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("tutor_email", "tuition_id", name="uq_applications_tutor_tuition"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tuition_id = Column(Integer, ForeignKey("tuition_posts.id", ondelete="CASCADE"), index=True, nullable=False)
    tutor_email = Column(String, index=True, nullable=False)
    student_email = Column(String, index=True)
    subject = Column(String)
    qualification = Column(String)
    experience = Column(String)
    expected_salary = Column(Integer)
    message = Column(Text)
    availability = Column(String)
    status = Column(String, nullable=False, default=STATUS_PENDING)
    payment_id = Column(String)
    created_at = Column(DateTime, default=datetime.now)
