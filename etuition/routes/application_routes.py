import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from etuition.auth.dependencies import require_student, require_tutor
from etuition.database import get_db
from etuition.models import application as application_model
from etuition.models import tuition as tuition_model
from etuition.models.application import Application
from etuition.models.tuition import TuitionPost
from etuition.models.user import User
from etuition.routes.tuition_routes import get_tuition_or_404
from etuition.services.notifications import notify

router = APIRouter(tags=['applications'])

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000
STUDENT_SETTABLE_STATUSES = (application_model.STATUS_PENDING, application_model.STATUS_REJECTED)


class ApplyRequest(BaseModel):
    tuition_id: int
    qualification: str | None = None
    experience: str | None = None
    expected_salary: int | None = Field(default=None, ge=0)
    message: str | None = None
    availability: str | None = None

    @field_validator('message')
    @classmethod
    def validate_message(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_MESSAGE_LENGTH:
            raise ValueError(f'Message must be {MAX_MESSAGE_LENGTH} characters or fewer.')
        return normalized or None


class ApplicationResponse(BaseModel):
    id: int
    tuition_id: int
    tutor_email: str
    student_email: str | None = None
    subject: str | None = None
    qualification: str | None = None
    experience: str | None = None
    expected_salary: int | None = None
    message: str | None = None
    availability: str | None = None
    status: str
    payment_id: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class EnrichedApplicationResponse(ApplicationResponse):
    tutor_name: str | None = None
    tutor_photo: str | None = None
    tuition_title: str | None = None
    tuition_subject: str | None = None
    tuition_class: str | None = None
    tuition_salary: int | None = None


class UpdateApplicationStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in STUDENT_SETTABLE_STATUSES:
            raise ValueError('Students can only reject or reset an application.')
        return normalized


class RejectTutorRequest(BaseModel):
    application_id: int


def enrich_application(db: Session, application: Application, include_tuition: bool = False) -> EnrichedApplicationResponse:
    response = EnrichedApplicationResponse.model_validate(application)

    tutor = db.query(User).filter(User.email == application.tutor_email).first()
    if tutor:
        response.tutor_name = tutor.name
        response.tutor_photo = tutor.photo_url

    if include_tuition:
        tuition = db.get(TuitionPost, application.tuition_id)
        if tuition:
            response.tuition_title = tuition.title
            response.tuition_subject = tuition.subject
            response.tuition_class = tuition.class_name
            response.tuition_salary = tuition.salary

    return response


def get_owned_application(db: Session, application_id: int, student: User) -> Application:
    application = db.get(Application, application_id)
    if application is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Application not found.')
    if application.student_email != student.email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the student who posted this tuition can manage its applications.',
        )
    return application


@router.post('/apply-tuition', response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
@router.post('/tuition-application', response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
def apply_for_tuition(
    data: ApplyRequest,
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    existing_application = db.query(Application).filter(
        Application.tutor_email == tutor.email,
        Application.tuition_id == data.tuition_id,
    ).first()
    if existing_application:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Already applied')

    tuition = get_tuition_or_404(db, data.tuition_id)
    if tuition.status != tuition_model.STATUS_APPROVED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Tuition is not open for applications')
    if tuition.assigned_tutor_email:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Tuition already assigned to a tutor')

    application = Application(
        tuition_id=tuition.id,
        tutor_email=tutor.email,
        student_email=tuition.student_email,
        subject=tuition.subject,
        qualification=data.qualification or tutor.qualification,
        experience=data.experience or tutor.experience,
        expected_salary=data.expected_salary,
        message=data.message,
        availability=data.availability,
        status=application_model.STATUS_PENDING,
    )
    try:
        db.add(application)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Already applied') from exc
    db.refresh(application)
    logger.info('Tutor %s applied to tuition %s', tutor.email, tuition.id)

    response = ApplicationResponse.model_validate(application)
    notify(
        db,
        response.student_email,
        'application',
        f'A tutor applied to your {response.subject} tuition.',
        '/dashboard/student/applied-tutors',
    )
    return response


@router.get('/my-applications', response_model=list[EnrichedApplicationResponse])
def list_my_applications(tutor: User = Depends(require_tutor), db: Session = Depends(get_db)):
    applications = (
        db.query(Application)
        .filter(Application.tutor_email == tutor.email)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .all()
    )
    return [enrich_application(db, application, include_tuition=True) for application in applications]


@router.get('/applications/{tuition_id}', response_model=list[EnrichedApplicationResponse])
@router.get('/applied-tutors/{tuition_id}', response_model=list[EnrichedApplicationResponse])
def list_applications_for_tuition(
    tuition_id: int,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    tuition = get_tuition_or_404(db, tuition_id)
    if tuition.student_email != student.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Forbidden access')

    applications = (
        db.query(Application)
        .filter(Application.tuition_id == tuition.id)
        .order_by(Application.created_at.asc(), Application.id.asc())
        .all()
    )
    return [enrich_application(db, application) for application in applications]


@router.get('/student-applications/{student_email}', response_model=list[EnrichedApplicationResponse])
def list_student_applications(
    student_email: str,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    if student_email.strip().lower() != student.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Forbidden access')

    applications = (
        db.query(Application)
        .filter(Application.student_email == student.email)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .all()
    )
    return [enrich_application(db, application, include_tuition=True) for application in applications]


@router.patch('/applications/{application_id}', response_model=ApplicationResponse)
def update_application_status(
    application_id: int,
    data: UpdateApplicationStatusRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    application = get_owned_application(db, application_id, student)
    if application.status == application_model.STATUS_APPROVED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='This tutor has already been hired.')

    tuition = db.get(TuitionPost, application.tuition_id)
    if (
        tuition is not None
        and tuition.assigned_tutor_email
        and data.status != application_model.STATUS_REJECTED
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Applications cannot be reopened once a tutor is assigned.',
        )

    application.status = data.status
    db.commit()
    db.refresh(application)
    return application


@router.post('/reject-tutor', response_model=ApplicationResponse)
def reject_tutor(
    data: RejectTutorRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    return update_application_status(
        application_id=data.application_id,
        data=UpdateApplicationStatusRequest(status=application_model.STATUS_REJECTED),
        student=student,
        db=db,
    )


@router.delete('/applications/{application_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_application(
    application_id: int,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    application = get_owned_application(db, application_id, student)
    if application.status == application_model.STATUS_APPROVED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='A hired application cannot be deleted.')

    db.delete(application)
    db.commit()
