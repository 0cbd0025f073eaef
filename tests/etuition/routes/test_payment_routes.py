import pytest
from fastapi import HTTPException

from etuition.models.payment import Payment
from etuition.models.tuition import TuitionPost
from etuition.routes.payment_routes import (
    HireRequest,
    PaymentSuccessRequest,
    ProcessPaymentRequest,
    create_checkout_session,
    demo_payment,
    list_my_payments,
    process_payment,
    verify_payment,
)
from etuition.services.payment_gateway import PaymentGatewayError

STUDENT = 'student@example.com'
TUTOR = 'tutor@example.com'


class RecordingGateway:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.created: list[dict] = []

    def create_checkout_session(self, **kwargs) -> dict:
        if self.error:
            raise self.error
        self.created.append(kwargs)
        return {'id': 'cs_test_1', 'url': 'https://checkout.test/cs_test_1'}

    def retrieve_checkout_session(self, session_id: str) -> dict:
        raise self.error or PaymentGatewayError('not configured')


@pytest.fixture
def hire_setup(make_user, make_tuition, make_application):
    student = make_user(STUDENT, name='Student')
    make_user(TUTOR, role='tutor', name='Rahim Uddin')
    tuition = make_tuition(STUDENT, subject='Physics', class_name='9')
    application = make_application(tuition, TUTOR)
    return student, tuition, application


def _hire_request(tuition, application, **overrides) -> HireRequest:
    fields = {
        'tuition_id': tuition.id,
        'application_id': application.id,
        'tutor_email': TUTOR,
        'amount': 5000,
    }
    fields.update(overrides)
    return HireRequest(**fields)


def test_create_checkout_session_passes_hire_metadata(db, hire_setup) -> None:
    student, tuition, application = hire_setup
    gateway = RecordingGateway()

    session = create_checkout_session(data=_hire_request(tuition, application), student=student, db=db, gateway=gateway)

    assert session.id == 'cs_test_1'
    created = gateway.created[0]
    assert created['amount'] == 5000
    assert created['customer_email'] == STUDENT
    assert created['metadata'] == {
        'tuitionId': str(tuition.id),
        'applicationId': str(application.id),
        'tutorEmail': TUTOR,
        'studentEmail': STUDENT,
    }
    assert db.query(Payment).count() == 0


def test_create_checkout_session_maps_gateway_failure(db, hire_setup) -> None:
    student, tuition, application = hire_setup
    gateway = RecordingGateway(error=PaymentGatewayError('Payment provider is unavailable.'))

    with pytest.raises(HTTPException) as exception_info:
        create_checkout_session(data=_hire_request(tuition, application), student=student, db=db, gateway=gateway)

    assert exception_info.value.status_code == 502


def test_demo_payment_hires_tutor_and_verifies(db, hire_setup) -> None:
    student, tuition, application = hire_setup

    result = demo_payment(data=_hire_request(tuition, application), student=student, db=db)

    assert result.success is True
    assert result.payment_id.startswith('DEMO_')
    assert db.get(TuitionPost, tuition.id).assigned_tutor_email == TUTOR

    verified = verify_payment(
        data=PaymentSuccessRequest(session_id=result.payment_id),
        student=student,
        db=db,
        gateway=RecordingGateway(),
    )
    assert verified['success'] is True
    assert verified['payment'].method == 'Demo PaymentSystem'


def test_verify_payment_reports_unknown_demo_transaction(db, hire_setup) -> None:
    student, _, _ = hire_setup

    result = verify_payment(
        data=PaymentSuccessRequest(session_id='DEMO_missing'),
        student=student,
        db=db,
        gateway=RecordingGateway(),
    )

    assert result == {'success': False, 'message': 'Payment not found in demo records'}


def test_verify_payment_maps_gateway_failure(db, hire_setup) -> None:
    student, _, _ = hire_setup

    with pytest.raises(HTTPException) as exception_info:
        verify_payment(
            data=PaymentSuccessRequest(session_id='cs_test_1'),
            student=student,
            db=db,
            gateway=RecordingGateway(error=PaymentGatewayError('timeout')),
        )

    assert exception_info.value.status_code == 502
    assert exception_info.value.detail == 'Verification failed'


def test_process_payment_records_client_transaction(db, hire_setup) -> None:
    student, tuition, application = hire_setup
    data = ProcessPaymentRequest(
        tuition_id=tuition.id,
        application_id=application.id,
        tutor_email=TUTOR,
        amount=5000,
        transaction_id='txn_card_1',
    )

    result = process_payment(data=data, student=student, db=db)

    assert result.payment_id == 'txn_card_1'
    payment = db.query(Payment).one()
    assert payment.method == 'Demo Card'

    with pytest.raises(HTTPException) as exception_info:
        process_payment(data=data, student=student, db=db)
    assert exception_info.value.status_code == 409


def test_list_my_payments_names_the_other_party(db, hire_setup) -> None:
    student, tuition, application = hire_setup
    demo_payment(data=_hire_request(tuition, application), student=student, db=db)

    student_view = list_my_payments(email=STUDENT, db=db)
    tutor_view = list_my_payments(email=TUTOR, db=db)

    assert student_view[0].other_name == 'Rahim Uddin'
    assert student_view[0].tuition_title == 'Physics'
    assert tutor_view[0].other_name == 'Student'
    assert list_my_payments(email='stranger@example.com', db=db) == []


def test_verify_payment_hides_other_students_demo_payment(db, hire_setup, make_user) -> None:
    student, tuition, application = hire_setup
    result = demo_payment(data=_hire_request(tuition, application), student=student, db=db)
    nosy = make_user('nosy@example.com')

    with pytest.raises(HTTPException) as exception_info:
        verify_payment(
            data=PaymentSuccessRequest(session_id=result.payment_id),
            student=nosy,
            db=db,
            gateway=RecordingGateway(),
        )

    assert exception_info.value.status_code == 403
