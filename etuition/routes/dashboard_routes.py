from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from etuition.auth.dependencies import require_admin, require_student, require_tutor
from etuition.database import get_db
from etuition.models import application as application_model
from etuition.models import tuition as tuition_model
from etuition.models.application import Application
from etuition.models.payment import STATUS_PAID, Payment
from etuition.models.tuition import TuitionPost
from etuition.models.user import ROLE_STUDENT, ROLE_TUTOR, User
from etuition.routes.application_routes import ApplicationResponse
from etuition.routes.payment_routes import PaymentResponse
from etuition.routes.tuition_routes import TuitionResponse

router = APIRouter(tags=['dashboards'])

RECENT_ACTIVITY_LIMIT = 3


class AnalyticsResponse(BaseModel):
    total_users: int
    total_tuitions: int
    total_student_count: int
    total_tutor_count: int
    total_revenue: float


class StudentStatsResponse(BaseModel):
    total_tuitions: int
    hired_tutors: int
    total_spent: float
    total_applications: int


class TutorStatsResponse(BaseModel):
    total_earnings: float
    active_tuitions_count: int
    total_applications: int


class TutorActivityResponse(BaseModel):
    recent_apps: list[ApplicationResponse]
    recent_payments: list[PaymentResponse]


def sum_payments(db: Session, *criteria) -> float:
    total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(*criteria).scalar()
    return float(total or 0)


@router.get('/reports/analytics', response_model=AnalyticsResponse)
def admin_analytics(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return AnalyticsResponse(
        total_users=db.query(User).count(),
        total_tuitions=db.query(TuitionPost).count(),
        total_student_count=db.query(User).filter(User.role == ROLE_STUDENT).count(),
        total_tutor_count=db.query(User).filter(User.role == ROLE_TUTOR).count(),
        total_revenue=sum_payments(db, Payment.status == STATUS_PAID),
    )


@router.get('/student/dashboard-stats', response_model=StudentStatsResponse)
def student_dashboard_stats(student: User = Depends(require_student), db: Session = Depends(get_db)):
    my_tuitions = db.query(TuitionPost).filter(TuitionPost.student_email == student.email)
    return StudentStatsResponse(
        total_tuitions=my_tuitions.count(),
        hired_tutors=my_tuitions.filter(TuitionPost.status == tuition_model.STATUS_ONGOING).count(),
        total_spent=sum_payments(db, Payment.student_email == student.email, Payment.status == STATUS_PAID),
        total_applications=db.query(Application).filter(Application.student_email == student.email).count(),
    )


@router.get('/student/recent-activities', response_model=list[TuitionResponse])
def student_recent_activities(student: User = Depends(require_student), db: Session = Depends(get_db)):
    return (
        db.query(TuitionPost)
        .filter(TuitionPost.student_email == student.email)
        .order_by(TuitionPost.created_at.desc(), TuitionPost.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )


@router.get('/tutor/dashboard-stats', response_model=TutorStatsResponse)
def tutor_dashboard_stats(tutor: User = Depends(require_tutor), db: Session = Depends(get_db)):
    my_applications = db.query(Application).filter(Application.tutor_email == tutor.email)
    return TutorStatsResponse(
        total_earnings=sum_payments(db, Payment.tutor_email == tutor.email, Payment.status == STATUS_PAID),
        active_tuitions_count=my_applications.filter(
            Application.status == application_model.STATUS_APPROVED,
        ).count(),
        total_applications=my_applications.count(),
    )


@router.get('/tutor/recent-activities', response_model=TutorActivityResponse)
def tutor_recent_activities(tutor: User = Depends(require_tutor), db: Session = Depends(get_db)):
    recent_apps = (
        db.query(Application)
        .filter(Application.tutor_email == tutor.email)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    recent_payments = (
        db.query(Payment)
        .filter(Payment.tutor_email == tutor.email)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return TutorActivityResponse(
        recent_apps=[ApplicationResponse.model_validate(row) for row in recent_apps],
        recent_payments=[PaymentResponse.model_validate(row) for row in recent_payments],
    )
