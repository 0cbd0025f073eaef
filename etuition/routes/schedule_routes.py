import logging
import re
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email, require_tutor
from etuition.database import get_db
from etuition.models.schedule import STATUS_SCHEDULED, Schedule
from etuition.models.tuition import TuitionPost
from etuition.models.user import User
from etuition.services.notifications import notify

router = APIRouter(tags=['schedules'])

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')
SCHEDULE_STATUSES = (STATUS_SCHEDULED, 'completed', 'cancelled')

# Alias for fields that are themselves named "date".
CalendarDate = date


def _validate_clock_time(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not TIME_PATTERN.match(normalized):
        raise ValueError('Times must use HH:MM (24-hour) format.')
    return normalized


class CreateScheduleRequest(BaseModel):
    tuition_id: int
    date: CalendarDate
    start_time: str
    end_time: str
    subject: str | None = None
    notes: str | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, value: str) -> str:
        return _validate_clock_time(value)


class UpdateScheduleRequest(BaseModel):
    date: CalendarDate | None = None
    start_time: str | None = None
    end_time: str | None = None
    subject: str | None = None
    notes: str | None = None
    status: str | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_times(cls, value: str | None) -> str | None:
        return _validate_clock_time(value)

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in SCHEDULE_STATUSES:
            raise ValueError('Invalid schedule status.')
        return normalized


class ScheduleResponse(BaseModel):
    id: int
    tuition_id: int | None = None
    tutor_email: str
    student_email: str
    date: CalendarDate
    start_time: str | None = None
    end_time: str | None = None
    subject: str | None = None
    notes: str | None = None
    status: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_own_schedule(db: Session, schedule_id: int, tutor: User) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Schedule not found.')
    if schedule.tutor_email != tutor.email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the tutor who created this schedule can change it.',
        )
    return schedule


@router.post('/schedules', response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    data: CreateScheduleRequest,
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    if data.end_time <= data.start_time:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='End time must be after start time.')

    tuition = db.get(TuitionPost, data.tuition_id)
    if tuition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Tuition not found')
    if tuition.assigned_tutor_email != tutor.email:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='You can only schedule classes for tuitions assigned to you.',
        )

    schedule = Schedule(
        tuition_id=tuition.id,
        tutor_email=tutor.email,
        student_email=tuition.student_email,
        date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        subject=data.subject or tuition.subject,
        notes=data.notes,
        status=STATUS_SCHEDULED,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)

    response = ScheduleResponse.model_validate(schedule)
    notify(
        db,
        response.student_email,
        'schedule',
        f'New class scheduled for {response.subject} on {response.date.isoformat()}',
        '/dashboard/student/calendar',
    )
    return response


@router.get('/my-schedule', response_model=list[ScheduleResponse])
def list_my_schedule(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    return (
        db.query(Schedule)
        .filter(or_(Schedule.tutor_email == email, Schedule.student_email == email))
        .order_by(Schedule.date.asc(), Schedule.start_time.asc(), Schedule.id.asc())
        .all()
    )


@router.patch('/schedules/{schedule_id}', response_model=ScheduleResponse)
def update_schedule(
    schedule_id: int,
    data: UpdateScheduleRequest,
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    schedule = get_own_schedule(db, schedule_id, tutor)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(schedule, field, value)

    if schedule.start_time and schedule.end_time and schedule.end_time <= schedule.start_time:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='End time must be after start time.')

    db.commit()
    db.refresh(schedule)
    return schedule


@router.delete('/schedules/{schedule_id}')
def delete_schedule(
    schedule_id: int,
    tutor: User = Depends(require_tutor),
    db: Session = Depends(get_db),
):
    schedule = get_own_schedule(db, schedule_id, tutor)
    db.delete(schedule)
    db.commit()
    return {'success': True}
