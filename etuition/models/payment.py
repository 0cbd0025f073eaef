"""Payment record model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Integer, String

from etuition.database import Base

STATUS_PAID = "paid"


class Payment(Base):
    """Records a completed transaction for a hire."""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String, unique=True, index=True, nullable=False)
    tuition_id = Column(Integer, index=True)
    application_id = Column(Integer)
    student_email = Column(String, index=True)
    tutor_email = Column(String, index=True)
    amount = Column(Float, nullable=False, default=0)
    currency = Column(String, default="BDT")
    status = Column(String, default=STATUS_PAID)
    method = Column(String)
    created_at = Column(DateTime, default=datetime.now)
