import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email, require_admin, require_student
from etuition.database import get_db
from etuition.models import role_request as role_request_model
from etuition.models.role_request import RoleRequest
from etuition.models.user import ROLE_STUDENT, ROLE_TUTOR, User
from etuition.services.notifications import notify

router = APIRouter(tags=['role-requests'])

logger = logging.getLogger(__name__)

REVIEW_STATUSES = (role_request_model.STATUS_APPROVED, role_request_model.STATUS_REJECTED)


class CreateRoleRequest(BaseModel):
    user_name: str | None = None


class ReviewRoleRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in REVIEW_STATUSES:
            raise ValueError('Status must be approved or rejected.')
        return normalized


class RoleRequestResponse(BaseModel):
    id: int
    user_email: str
    user_name: str | None = None
    current_role: str | None = None
    requested_role: str | None = None
    status: str
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/role-requests', response_model=RoleRequestResponse, status_code=status.HTTP_201_CREATED)
def create_role_request(
    data: CreateRoleRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    existing = db.query(RoleRequest).filter(
        RoleRequest.user_email == student.email,
        RoleRequest.status == role_request_model.STATUS_PENDING,
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='You already have a pending request.')

    role_request = RoleRequest(
        user_email=student.email,
        user_name=data.user_name or student.name,
        current_role=ROLE_STUDENT,
        requested_role=ROLE_TUTOR,
        status=role_request_model.STATUS_PENDING,
    )
    db.add(role_request)
    db.commit()
    db.refresh(role_request)
    return role_request


@router.get('/role-requests/my', response_model=list[RoleRequestResponse])
def list_my_role_requests(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    return (
        db.query(RoleRequest)
        .filter(RoleRequest.user_email == email)
        .order_by(RoleRequest.created_at.desc(), RoleRequest.id.desc())
        .all()
    )


@router.get('/role-requests', response_model=list[RoleRequestResponse])
def list_role_requests(
    status_filter: str | None = Query(default=None, alias='status'),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    query = db.query(RoleRequest)
    if status_filter:
        query = query.filter(RoleRequest.status == status_filter.strip().lower())
    return query.order_by(RoleRequest.created_at.desc(), RoleRequest.id.desc()).all()


@router.patch('/role-requests/{request_id}', response_model=RoleRequestResponse)
def review_role_request(
    request_id: int,
    data: ReviewRoleRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    role_request = db.get(RoleRequest, request_id)
    if role_request is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Request not found')

    if data.status == role_request_model.STATUS_APPROVED:
        user = db.query(User).filter(User.email == role_request.user_email).first()
        if user is None:
            logger.warning('User %s not found while approving role.', role_request.user_email)
        else:
            user.role = role_request.requested_role or ROLE_TUTOR

    role_request.status = data.status
    role_request.reviewed_by = admin.email
    role_request.reviewed_at = datetime.now()
    db.commit()
    db.refresh(role_request)

    response = RoleRequestResponse.model_validate(role_request)
    notify(
        db,
        response.user_email,
        'role-request',
        f'Your tutor role request was {data.status}.',
        '/dashboard/profile',
    )
    return response
