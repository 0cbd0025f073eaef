import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email, require_admin, require_student
from etuition.core import config
from etuition.database import get_db
from etuition.models.payment import Payment
from etuition.models.tuition import TuitionPost
from etuition.models.user import User
from etuition.services import hiring
from etuition.services.payment_gateway import CheckoutGateway, PaymentGatewayError

router = APIRouter(tags=['payments'])

logger = logging.getLogger(__name__)


class HireRequest(BaseModel):
    tuition_id: int
    application_id: int
    tutor_email: str
    amount: float = Field(gt=0)

    @field_validator('tutor_email')
    @classmethod
    def validate_tutor_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Tutor email is required.')
        return normalized


class ProcessPaymentRequest(HireRequest):
    transaction_id: str
    method: str | None = None

    @field_validator('transaction_id')
    @classmethod
    def validate_transaction_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Transaction id is required.')
        return normalized


class PaymentSuccessRequest(BaseModel):
    session_id: str


class CheckoutSessionResponse(BaseModel):
    id: str
    url: str | None = None


class PaymentResponse(BaseModel):
    id: int
    transaction_id: str
    tuition_id: int | None = None
    application_id: int | None = None
    student_email: str | None = None
    tutor_email: str | None = None
    amount: float
    currency: str | None = None
    status: str | None = None
    method: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class EnrichedPaymentResponse(PaymentResponse):
    tuition_title: str | None = None
    other_name: str | None = None


class HireResponse(BaseModel):
    success: bool
    payment_id: str
    status: str = 'Success'


def get_payment_gateway(request: Request) -> CheckoutGateway:
    return request.app.state.payment_gateway


@router.post('/create-checkout-session', response_model=CheckoutSessionResponse)
def create_checkout_session(
    data: HireRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
    gateway: CheckoutGateway = Depends(get_payment_gateway),
):
    tuition, application = hiring.load_hire_targets(
        db,
        student_email=student.email,
        tuition_id=data.tuition_id,
        application_id=data.application_id,
        tutor_email=data.tutor_email,
    )
    metadata = {
        'tuitionId': str(tuition.id),
        'applicationId': str(application.id),
        'tutorEmail': application.tutor_email,
        'studentEmail': student.email,
    }
    try:
        session = gateway.create_checkout_session(
            amount=data.amount,
            product_name=f'Tuition: {tuition.title}',
            metadata=metadata,
            customer_email=student.email,
        )
    except PaymentGatewayError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return CheckoutSessionResponse(id=session['id'], url=session.get('url'))


@router.post('/payment-success')
def verify_payment(
    data: PaymentSuccessRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
    gateway: CheckoutGateway = Depends(get_payment_gateway),
):
    session_id = data.session_id.strip()

    if hiring.is_demo_transaction(session_id):
        payment = db.query(Payment).filter(Payment.transaction_id == session_id).first()
        if payment is None:
            return {'success': False, 'message': 'Payment not found in demo records'}
        if payment.student_email != student.email:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='This payment belongs to another student.')
        return {
            'success': True,
            'message': 'Payment verified (Demo)',
            'payment': PaymentResponse.model_validate(payment),
        }

    try:
        return hiring.reconcile_checkout_session(
            db,
            gateway,
            session_id=session_id,
            student_email=student.email,
        )
    except PaymentGatewayError as exc:
        logger.error('Payment verification for session %s failed: %s', session_id, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail='Verification failed') from exc


@router.post('/payments/demo', response_model=HireResponse)
def demo_payment(
    data: HireRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    transaction_id = hiring.demo_transaction_id()
    hiring.settle_hire(
        db,
        student_email=student.email,
        tuition_id=data.tuition_id,
        application_id=data.application_id,
        tutor_email=data.tutor_email,
        amount=data.amount,
        transaction_id=transaction_id,
        method=hiring.DEMO_PAYMENT_METHOD,
        currency=config.PAYMENT_CURRENCY,
    )
    return HireResponse(success=True, payment_id=transaction_id)


@router.post('/process-payment', response_model=HireResponse)
def process_payment(
    data: ProcessPaymentRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    hiring.settle_hire(
        db,
        student_email=student.email,
        tuition_id=data.tuition_id,
        application_id=data.application_id,
        tutor_email=data.tutor_email,
        amount=data.amount,
        transaction_id=data.transaction_id,
        method=data.method or 'Demo Card',
        currency=config.PAYMENT_CURRENCY,
    )
    return HireResponse(success=True, payment_id=data.transaction_id)


@router.get('/my-payments', response_model=list[EnrichedPaymentResponse])
def list_my_payments(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    payments = (
        db.query(Payment)
        .filter(or_(Payment.student_email == email, Payment.tutor_email == email))
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )

    enriched: list[EnrichedPaymentResponse] = []
    for payment in payments:
        response = EnrichedPaymentResponse.model_validate(payment)
        if payment.tuition_id:
            tuition = db.get(TuitionPost, payment.tuition_id)
            if tuition:
                response.tuition_title = tuition.subject

        other_email = payment.tutor_email if payment.student_email == email else payment.student_email
        other = db.query(User).filter(User.email == other_email).first()
        if other:
            response.other_name = other.name
        enriched.append(response)

    return enriched


@router.get('/all-payments', response_model=list[PaymentResponse])
def list_all_payments(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()).all()
