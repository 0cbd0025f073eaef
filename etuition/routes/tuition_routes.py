import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Query as SAQuery
from sqlalchemy.orm import Session

from etuition.auth.dependencies import require_admin, require_student, require_tutor
from etuition.core import config
from etuition.core.pagination import LIKE_ESCAPE, Page, contains_pattern, normalize_page, paginate
from etuition.database import get_db
from etuition.models import tuition as tuition_model
from etuition.models.tuition import TuitionPost
from etuition.models.user import User
from etuition.services.notifications import notify

router = APIRouter(tags=['tuitions'])

logger = logging.getLogger(__name__)

SORT_OPTIONS = {
    'price_asc': (TuitionPost.salary.asc(),),
    'price_desc': (TuitionPost.salary.desc(),),
    'newest': (TuitionPost.created_at.desc(),),
}
DEFAULT_SORT = 'newest'
MAX_DESCRIPTION_LENGTH = 2000


class CreateTuitionRequest(BaseModel):
    subject: str
    class_name: str = Field(alias='class')
    location: str
    salary: int = Field(ge=0)
    days_per_week: int | None = Field(default=None, ge=1, le=7)
    gender_preference: str | None = None
    description: str | None = None

    class Config:
        populate_by_name = True

    @field_validator('subject', 'class_name', 'location')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized or None


class TuitionResponse(BaseModel):
    id: int
    student_email: str
    subject: str
    class_name: str | None = Field(default=None, alias='class')
    location: str | None = None
    salary: int | None = None
    days_per_week: int | None = None
    gender_preference: str | None = None
    description: str | None = None
    status: str
    assigned_tutor_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
        populate_by_name = True


class UpdateTuitionStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in tuition_model.ADMIN_STATUSES:
            raise ValueError('Invalid tuition status.')
        return normalized


def apply_text_filters(
    query: SAQuery,
    *,
    subject: str | None = None,
    location: str | None = None,
    class_name: str | None = None,
) -> SAQuery:
    for column, value in (
        (TuitionPost.subject, subject),
        (TuitionPost.location, location),
        (TuitionPost.class_name, class_name),
    ):
        term = (value or '').strip()
        if term:
            query = query.filter(column.ilike(contains_pattern(term), escape=LIKE_ESCAPE))
    return query


def search_public_tuitions(
    db: Session,
    *,
    search: str | None = None,
    subject: str | None = None,
    location: str | None = None,
    class_name: str | None = None,
    sort: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> Page[TuitionResponse]:
    page, limit = normalize_page(page, limit, config.TUITIONS_PAGE_SIZE)
    query = db.query(TuitionPost).filter(TuitionPost.status == tuition_model.STATUS_APPROVED)

    term = (search or '').strip()
    if term:
        pattern = contains_pattern(term)
        query = query.filter(or_(
            TuitionPost.subject.ilike(pattern, escape=LIKE_ESCAPE),
            TuitionPost.location.ilike(pattern, escape=LIKE_ESCAPE),
        ))

    query = apply_text_filters(query, subject=subject, location=location, class_name=class_name)
    ordering = SORT_OPTIONS.get(sort or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])
    query = query.order_by(*ordering, TuitionPost.id.desc())

    rows, total, total_pages = paginate(query, page, limit)
    return Page[TuitionResponse](
        data=[TuitionResponse.model_validate(row) for row in rows],
        total=total,
        current_page=page,
        total_pages=total_pages,
    )


def get_tuition_or_404(db: Session, tuition_id: int) -> TuitionPost:
    tuition = db.get(TuitionPost, tuition_id)
    if tuition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Tuition not found')
    return tuition


@router.get('/tuitions', response_model=Page[TuitionResponse])
def list_public_tuitions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.TUITIONS_PAGE_SIZE, ge=1, le=100),
    search: str | None = Query(default=None),
    sort: str | None = Query(default=None),
    subject: str | None = Query(default=None),
    location: str | None = Query(default=None),
    class_name: str | None = Query(default=None, alias='class'),
    db: Session = Depends(get_db),
):
    return search_public_tuitions(
        db,
        search=search,
        subject=subject,
        location=location,
        class_name=class_name,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get('/tuitions/{tuition_id}', response_model=TuitionResponse)
def get_tuition(tuition_id: int, db: Session = Depends(get_db)):
    return get_tuition_or_404(db, tuition_id)


@router.post('/tuitions-post', response_model=TuitionResponse, status_code=status.HTTP_201_CREATED)
def create_tuition(
    data: CreateTuitionRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    tuition = TuitionPost(
        student_email=student.email,
        subject=data.subject,
        class_name=data.class_name,
        location=data.location,
        salary=data.salary,
        days_per_week=data.days_per_week,
        gender_preference=data.gender_preference,
        description=data.description,
        status=tuition_model.STATUS_PENDING,
    )
    db.add(tuition)
    db.commit()
    db.refresh(tuition)
    logger.info('Student %s posted tuition %s', student.email, tuition.id)
    return tuition


@router.get('/tuitions-post', response_model=list[TuitionResponse])
def list_tuition_posts_for_tutors(
    status_filter: str = Query(default=tuition_model.STATUS_APPROVED, alias='status'),
    subject: str | None = Query(default=None),
    location: str | None = Query(default=None),
    class_name: str | None = Query(default=None, alias='class'),
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    query = db.query(TuitionPost).filter(TuitionPost.status == status_filter.strip().lower())
    query = apply_text_filters(query, subject=subject, location=location, class_name=class_name)
    return query.order_by(TuitionPost.created_at.desc(), TuitionPost.id.desc()).all()


@router.get('/my-tuitions', response_model=list[TuitionResponse])
def list_my_tuitions(student: User = Depends(require_student), db: Session = Depends(get_db)):
    return (
        db.query(TuitionPost)
        .filter(TuitionPost.student_email == student.email)
        .order_by(TuitionPost.created_at.desc(), TuitionPost.id.desc())
        .all()
    )


@router.get('/admin/tuitions', response_model=list[TuitionResponse])
def list_all_tuitions(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(TuitionPost).order_by(TuitionPost.created_at.desc(), TuitionPost.id.desc()).all()


@router.patch('/tuition-status/{tuition_id}', response_model=TuitionResponse)
def update_tuition_status(
    tuition_id: int,
    data: UpdateTuitionStatusRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    tuition = get_tuition_or_404(db, tuition_id)
    if tuition.assigned_tutor_email and data.status != tuition_model.STATUS_CLOSED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='An assigned tuition can only be closed.',
        )

    tuition.status = data.status
    db.commit()
    db.refresh(tuition)
    logger.info('Admin %s set tuition %s to %s', admin.email, tuition.id, data.status)

    notify(
        db,
        tuition.student_email,
        'tuition-status',
        f'Your {tuition.subject} tuition post is now {data.status}.',
        '/dashboard/student/my-tuitions',
    )
    return tuition
