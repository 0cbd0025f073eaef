"""Notification model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from etuition.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String, index=True, nullable=False)
    type = Column(String)
    message = Column(String)
    link = Column(String)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.now)
