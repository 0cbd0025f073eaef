import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from etuition.auth.dependencies import require_student
from etuition.database import get_db
from etuition.models.payment import STATUS_PAID, Payment
from etuition.models.review import Review
from etuition.models.user import User
from etuition.services.notifications import notify

router = APIRouter(tags=['reviews'])

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


class CreateReviewRequest(BaseModel):
    tutor_email: str
    rating: int = Field(ge=1, le=5)
    comment: str | None = None
    tuition_id: int | None = None

    @field_validator('tutor_email')
    @classmethod
    def validate_tutor_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Tutor email is required.')
        return normalized

    @field_validator('comment')
    @classmethod
    def validate_comment(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if len(normalized) > MAX_COMMENT_LENGTH:
            raise ValueError(f'Comment must be {MAX_COMMENT_LENGTH} characters or fewer.')
        return normalized or None


class ReviewResponse(BaseModel):
    id: int
    tutor_email: str
    student_email: str
    tuition_id: int | None = None
    rating: int
    comment: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class TutorRatingResponse(BaseModel):
    average_rating: float
    total_reviews: int


def get_tutor_rating(db: Session, tutor_email: str) -> TutorRatingResponse:
    total, rating_sum = db.query(func.count(Review.id), func.sum(Review.rating)).filter(
        Review.tutor_email == tutor_email.strip().lower(),
    ).one()
    if not total:
        return TutorRatingResponse(average_rating=0, total_reviews=0)
    return TutorRatingResponse(average_rating=round(float(rating_sum) / total, 1), total_reviews=total)


@router.post('/reviews', response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    data: CreateReviewRequest,
    student: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    hired = db.query(Payment).filter(
        Payment.student_email == student.email,
        Payment.tutor_email == data.tutor_email,
        Payment.status == STATUS_PAID,
    ).first()
    if hired is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='You can only review tutors you have hired')

    existing_review = db.query(Review).filter(
        Review.student_email == student.email,
        Review.tutor_email == data.tutor_email,
    ).first()
    if existing_review:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='You have already reviewed this tutor')

    review = Review(
        tutor_email=data.tutor_email,
        student_email=student.email,
        tuition_id=data.tuition_id or hired.tuition_id,
        rating=data.rating,
        comment=data.comment,
    )
    try:
        db.add(review)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='You have already reviewed this tutor') from exc
    db.refresh(review)

    response = ReviewResponse.model_validate(review)
    notify(
        db,
        data.tutor_email,
        'review',
        f'You received a {data.rating}-star review!',
        '/dashboard/tutor/reviews',
    )
    return response


@router.get('/reviews/{tutor_email}', response_model=list[ReviewResponse])
def list_tutor_reviews(tutor_email: str, db: Session = Depends(get_db)):
    return (
        db.query(Review)
        .filter(Review.tutor_email == tutor_email.strip().lower())
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


@router.get('/tutor-rating/{tutor_email}', response_model=TutorRatingResponse)
def tutor_rating(tutor_email: str, db: Session = Depends(get_db)):
    return get_tutor_rating(db, tutor_email)
