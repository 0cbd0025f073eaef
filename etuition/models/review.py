"""Tutor review model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from etuition.database import Base


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("student_email", "tutor_email", name="uq_reviews_student_tutor"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tutor_email = Column(String, index=True, nullable=False)
    student_email = Column(String, nullable=False)
    tuition_id = Column(Integer)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=datetime.now)
