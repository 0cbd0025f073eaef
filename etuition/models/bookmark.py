"""Bookmark model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from etuition.database import Base


class Bookmark(Base):
    __tablename__ = "bookmarks"

    id = Column(Integer, primary_key=True, index=True)
    user_email = Column(String, index=True, nullable=False)
    item_id = Column(String, nullable=False)
    item_type = Column(String, nullable=False)  # tutor/tuition
    created_at = Column(DateTime, default=datetime.now)
