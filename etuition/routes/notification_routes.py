from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email
from etuition.core import config
from etuition.database import get_db
from etuition.models.notification import Notification

router = APIRouter(tags=['notifications'])


class NotificationResponse(BaseModel):
    id: int
    type: str | None = None
    message: str | None = None
    link: str | None = None
    read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def get_own_notification(db: Session, notification_id: int, email: str) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_email == email,
    ).first()
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Notification not found.')
    return notification


def mark_all_read(db: Session, email: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_email == email, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


@router.get('/notifications', response_model=list[NotificationResponse])
def list_notifications(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    return (
        db.query(Notification)
        .filter(Notification.user_email == email)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(config.NOTIFICATIONS_LIMIT)
        .all()
    )


# Registered before /notifications/{notification_id}/read so the literal path wins.
@router.patch('/notifications/read-all')
def read_all_notifications(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    return {'success': True, 'updated': mark_all_read(db, email)}


@router.patch('/notifications/{notification_id}/read')
def read_notification(
    notification_id: int,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    notification = get_own_notification(db, notification_id, email)
    notification.read = True
    db.commit()
    return {'success': True}


@router.delete('/notifications/{notification_id}')
def delete_notification(
    notification_id: int,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    notification = get_own_notification(db, notification_id, email)
    db.delete(notification)
    db.commit()
    return {'success': True}
