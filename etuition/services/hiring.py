"""Hiring workflow: a student accepts a tutor's application and pays.

Recording the payment, approving the chosen application, assigning the tutor
to the tuition post and rejecting every competing application happen in one
transaction. The tuition update only matches a post that has no assigned
tutor yet, so two concurrent acceptances for the same post cannot both win.
"""

import logging
import time
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from etuition.models import application as application_model
from etuition.models import tuition as tuition_model
from etuition.models.application import Application
from etuition.models.payment import STATUS_PAID, Payment
from etuition.models.tuition import TuitionPost
from etuition.services.notifications import notify
from etuition.services.payment_gateway import CheckoutGateway

logger = logging.getLogger(__name__)

DEMO_TRANSACTION_PREFIX = "DEMO_"
DEMO_PAYMENT_METHOD = "Demo PaymentSystem"
GATEWAY_PAYMENT_METHOD = "Stripe"


def demo_transaction_id() -> str:
    return f"{DEMO_TRANSACTION_PREFIX}{int(time.time() * 1000)}"


def is_demo_transaction(transaction_id: str) -> bool:
    return transaction_id.startswith(DEMO_TRANSACTION_PREFIX)


def load_hire_targets(
    db: Session,
    *,
    student_email: str,
    tuition_id: int,
    application_id: int,
    tutor_email: str,
) -> tuple[TuitionPost, Application]:
    tuition = db.get(TuitionPost, tuition_id)
    if tuition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tuition not found")
    if tuition.student_email != student_email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the student who posted this tuition can hire for it.",
        )

    application = db.get(Application, application_id)
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    if application.tuition_id != tuition.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application does not belong to this tuition.",
        )
    if application.tutor_email != tutor_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application was not submitted by this tutor.",
        )
    if tuition.assigned_tutor_email:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tuition already assigned to a tutor")

    return tuition, application


def settle_hire(
    db: Session,
    *,
    student_email: str,
    tuition_id: int,
    application_id: int,
    tutor_email: str,
    amount: float,
    transaction_id: str,
    method: str,
    currency: str = "BDT",
) -> Payment:
    """Record the payment and assign the tutor, all or nothing."""
    student_email = student_email.strip().lower()
    tutor_email = tutor_email.strip().lower()

    if amount <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount must be positive.")

    tuition, application = load_hire_targets(
        db,
        student_email=student_email,
        tuition_id=tuition_id,
        application_id=application_id,
        tutor_email=tutor_email,
    )

    if db.query(Payment).filter(Payment.transaction_id == transaction_id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment already recorded")

    subject = tuition.subject
    payment = Payment(
        transaction_id=transaction_id,
        tuition_id=tuition.id,
        application_id=application.id,
        student_email=student_email,
        tutor_email=tutor_email,
        amount=float(amount),
        currency=currency.upper(),
        status=STATUS_PAID,
        method=method,
    )

    try:
        db.add(payment)
        db.flush()

        assigned = (
            db.query(TuitionPost)
            .filter(
                TuitionPost.id == tuition.id,
                TuitionPost.assigned_tutor_email.is_(None),
            )
            .update(
                {
                    TuitionPost.status: tuition_model.STATUS_ONGOING,
                    TuitionPost.assigned_tutor_email: tutor_email,
                    TuitionPost.updated_at: datetime.now(),
                },
                synchronize_session=False,
            )
        )
        if assigned != 1:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tuition already assigned to a tutor")

        application.status = application_model.STATUS_APPROVED
        application.payment_id = transaction_id

        rejected = (
            db.query(Application)
            .filter(
                Application.tuition_id == tuition.id,
                Application.id != application.id,
            )
            .update({Application.status: application_model.STATUS_REJECTED}, synchronize_session=False)
        )

        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment already recorded") from exc

    db.refresh(payment)
    logger.info(
        "Tuition %s assigned to %s (payment %s, %s competing applications rejected)",
        tuition_id,
        tutor_email,
        transaction_id,
        rejected,
    )

    notify(
        db,
        tutor_email,
        "hired",
        f"You have been hired for {subject}!",
        "/dashboard/tutor/ongoing-tuitions",
    )
    return payment


def reconcile_checkout_session(
    db: Session,
    gateway: CheckoutGateway,
    *,
    session_id: str,
    student_email: str,
) -> dict:
    """Confirm a paid checkout session and run the hire it was opened for.

    Raises ``PaymentGatewayError`` when the session cannot be retrieved.
    """
    session = gateway.retrieve_checkout_session(session_id)
    if session.get("payment_status") != "paid":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment not successful")

    transaction_id = session.get("payment_intent") or session.get("id") or session_id
    if db.query(Payment).filter(Payment.transaction_id == transaction_id).first():
        return {"success": True, "message": "Payment already recorded"}

    metadata = session.get("metadata") or {}
    try:
        tuition_id = int(metadata["tuitionId"])
        application_id = int(metadata["applicationId"])
        tutor_email = metadata["tutorEmail"]
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Checkout session is missing hire details.",
        ) from exc

    session_student = (metadata.get("studentEmail") or "").strip().lower()
    if session_student != student_email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This checkout session belongs to another student.",
        )

    settle_hire(
        db,
        student_email=student_email,
        tuition_id=tuition_id,
        application_id=application_id,
        tutor_email=tutor_email,
        amount=(session.get("amount_total") or 0) / 100,
        transaction_id=transaction_id,
        method=GATEWAY_PAYMENT_METHOD,
        currency=(session.get("currency") or "bdt").upper(),
    )
    return {"success": True, "message": "Payment verified, Tutor Hired."}
