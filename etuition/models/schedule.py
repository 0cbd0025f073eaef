"""Class schedule model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from etuition.database import Base

STATUS_SCHEDULED = "scheduled"


class Schedule(Base):
    """A class session a tutor schedules for an ongoing tuition."""
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)
    tuition_id = Column(Integer, index=True)
    tutor_email = Column(String, index=True, nullable=False)
    student_email = Column(String, index=True, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String)
    end_time = Column(String)
    subject = Column(String)
    notes = Column(Text)
    status = Column(String, default=STATUS_SCHEDULED)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
