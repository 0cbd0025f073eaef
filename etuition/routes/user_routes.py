import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email, require_admin, require_tutor
from etuition.core import config
from etuition.core.pagination import LIKE_ESCAPE, Page, contains_pattern, normalize_page, paginate
from etuition.database import get_db
from etuition.models.user import ROLE_STUDENT, ROLE_TUTOR, ROLES, User

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

MAX_BIO_LENGTH = 2000


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None = None
    photo_url: str | None = None
    phone: str | None = None
    role: str
    qualification: str | None = None
    experience: str | None = None
    subjects: list[str] | None = None
    bio: str | None = None
    hourly_rate: int | None = None
    location: str | None = None
    verified: bool | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class CreateUserRequest(BaseModel):
    name: str | None = None
    photo_url: str | None = None
    phone: str | None = None


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    photo_url: str | None = None


class UpdateRoleRequest(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ROLES:
            raise ValueError('Invalid role.')
        return normalized


class TutorProfileRequest(BaseModel):
    qualification: str | None = None
    experience: str | None = None
    subjects: list[str] | None = None
    bio: str | None = None
    hourly_rate: int | None = None
    location: str | None = None

    @field_validator('subjects')
    @classmethod
    def validate_subjects(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [subject.strip() for subject in value if subject.strip()]

    @field_validator('bio')
    @classmethod
    def validate_bio(cls, value: str | None) -> str | None:
        if value is not None and len(value) > MAX_BIO_LENGTH:
            raise ValueError(f'Bio must be {MAX_BIO_LENGTH} characters or fewer.')
        return value

    @field_validator('hourly_rate')
    @classmethod
    def validate_hourly_rate(cls, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValueError('Hourly rate cannot be negative.')
        return value


def get_user_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.')
    return user


def search_tutors(db: Session, *, search: str | None = None, page: int = 1, limit: int | None = None) -> Page[UserResponse]:
    page, limit = normalize_page(page, limit, config.TUTORS_PAGE_SIZE)
    query = db.query(User).filter(User.role == ROLE_TUTOR)

    term = (search or '').strip()
    if term:
        pattern = contains_pattern(term)
        query = query.filter(or_(
            User.name.ilike(pattern, escape=LIKE_ESCAPE),
            User.email.ilike(pattern, escape=LIKE_ESCAPE),
        ))

    rows, total, total_pages = paginate(query.order_by(User.id.asc()), page, limit)
    return Page[UserResponse](
        data=[UserResponse.model_validate(row) for row in rows],
        total=total,
        current_page=page,
        total_pages=total_pages,
    )


@router.post('/user')
def create_user(
    data: CreateUserRequest,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        return {'message': 'User already exists', 'inserted_id': None}

    user = User(
        email=email,
        name=data.name,
        photo_url=data.photo_url,
        phone=data.phone,
        role=ROLE_STUDENT,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info('Registered user %s', email)

    return {'message': 'User created', 'inserted_id': user.id}


@router.get('/users/{email}', response_model=UserResponse)
def get_user(email: str, db: Session = Depends(get_db)):
    return get_user_by_email(db, email)


@router.get('/users', response_model=list[UserResponse])
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.delete('/user/{user_id}')
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.')
    if user.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Admins cannot delete their own account.')

    db.delete(user)
    db.commit()
    logger.info('Admin %s deleted user %s', admin.email, user.email)
    return {'deleted_count': 1}


@router.patch('/users/{user_id}/role', response_model=UserResponse)
def update_user_role(
    user_id: int,
    data: UpdateRoleRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.')

    user.role = data.role
    db.commit()
    db.refresh(user)
    logger.info('Admin %s set role of %s to %s', admin.email, user.email, data.role)
    return user


@router.get('/user/profile', response_model=UserResponse)
def get_my_profile(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    return get_user_by_email(db, email)


@router.put('/user/profile', response_model=UserResponse)
def update_my_profile(
    data: UpdateProfileRequest,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    user = get_user_by_email(db, email)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


@router.put('/tutor/profile', response_model=UserResponse)
def update_tutor_profile(
    data: TutorProfileRequest,
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tutor, field, value)
    db.commit()
    db.refresh(tutor)
    return tutor


@router.get('/tutors', response_model=Page[UserResponse])
def list_tutors(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=config.TUTORS_PAGE_SIZE, ge=1, le=100),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return search_tutors(db, search=search, page=page, limit=limit)
