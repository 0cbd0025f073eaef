"""User model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from etuition.database import Base

ROLE_STUDENT = "student"
ROLE_TUTOR = "tutor"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_TUTOR, ROLE_ADMIN)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    photo_url = Column(String)
    phone = Column(String)
    role = Column(String, nullable=False, default=ROLE_STUDENT)  # student/tutor/admin

    # Tutor profile
    qualification = Column(String)
    experience = Column(String)
    subjects = Column(JSON)
    bio = Column(Text)
    hourly_rate = Column(Integer)
    location = Column(String)
    verified = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
