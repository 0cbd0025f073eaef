"""Tutor role request model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from etuition.database import Base

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class RoleRequest(Base):
    """A student's request to be promoted to tutor."""
    __tablename__ = "role_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String, index=True, nullable=False)
    user_name = Column(String)
    current_role = Column(String, default="student")
    requested_role = Column(String, default="tutor")
    status = Column(String, nullable=False, default=STATUS_PENDING)
    reviewed_by = Column(String)
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)
