"""Best-effort notification inserts.

A failed notification is logged and rolled back; it never fails the request
that triggered it. Callers should commit their own work first.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from etuition.models.notification import Notification

logger = logging.getLogger(__name__)


def notify(db: Session, user_email: str, type_: str, message: str, link: str | None = None) -> Notification | None:
    notification = Notification(
        user_email=user_email,
        type=type_,
        message=message,
        link=link,
        read=False,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create %s notification for %s", type_, user_email)
        return None
    return notification
