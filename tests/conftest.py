import pytest

from etuition.database import Database
from etuition.models import tuition as tuition_model
from etuition.models.application import Application
from etuition.models.tuition import TuitionPost
from etuition.models.user import User


@pytest.fixture
def database():
    database = Database('sqlite:///:memory:')
    database.create_all()
    try:
        yield database
    finally:
        database.drop_all()
        database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = 'student', name: str | None = None) -> User:
        user = User(email=email, role=role, name=name or email.split('@')[0].title())
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_tuition(db):
    def _make_tuition(
        student_email: str,
        subject: str = 'Mathematics',
        status: str = tuition_model.STATUS_APPROVED,
        **fields,
    ) -> TuitionPost:
        fields.setdefault('class_name', 'Class 10')
        fields.setdefault('location', 'Dhanmondi, Dhaka')
        fields.setdefault('salary', 5000)
        tuition = TuitionPost(student_email=student_email, subject=subject, status=status, **fields)
        db.add(tuition)
        db.commit()
        db.refresh(tuition)
        return tuition

    return _make_tuition


@pytest.fixture
def make_application(db):
    def _make_application(tuition: TuitionPost, tutor_email: str, **fields) -> Application:
        application = Application(
            tuition_id=tuition.id,
            tutor_email=tutor_email,
            student_email=tuition.student_email,
            subject=tuition.subject,
            **fields,
        )
        db.add(application)
        db.commit()
        db.refresh(application)
        return application

    return _make_application
