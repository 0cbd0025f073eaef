import pytest
from fastapi import HTTPException

from etuition.models.notification import Notification
from etuition.routes.notification_routes import (
    delete_notification,
    list_notifications,
    read_all_notifications,
    read_notification,
)

OWNER = 'owner@example.com'
OTHER = 'other@example.com'


@pytest.fixture
def notifications(db):
    rows = [
        Notification(user_email=OWNER, type='message', message='First'),
        Notification(user_email=OWNER, type='message', message='Second'),
        Notification(user_email=OTHER, type='message', message='Not yours'),
    ]
    db.add_all(rows)
    db.commit()
    return rows


def test_list_notifications_returns_only_callers_rows(db, notifications) -> None:
    rows = list_notifications(email=OWNER, db=db)

    assert {row.message for row in rows} == {'First', 'Second'}


def test_list_notifications_is_capped(db) -> None:
    db.add_all(Notification(user_email=OWNER, message=f'#{index}') for index in range(25))
    db.commit()

    assert len(list_notifications(email=OWNER, db=db)) == 20


def test_read_all_notifications_leaves_other_users_untouched(db, notifications) -> None:
    result = read_all_notifications(email=OWNER, db=db)

    assert result == {'success': True, 'updated': 2}
    assert db.query(Notification).filter(Notification.user_email == OWNER, Notification.read.is_(False)).count() == 0
    assert db.query(Notification).filter(Notification.user_email == OTHER).one().read is False


def test_read_notification_marks_single_row(db, notifications) -> None:
    first, second, _ = notifications

    assert read_notification(notification_id=first.id, email=OWNER, db=db) == {'success': True}
    assert db.get(Notification, first.id).read is True
    assert db.get(Notification, second.id).read is False


def test_read_notification_hides_other_users_rows(db, notifications) -> None:
    foreign = notifications[2]

    with pytest.raises(HTTPException) as exception_info:
        read_notification(notification_id=foreign.id, email=OWNER, db=db)

    assert exception_info.value.status_code == 404
    assert db.get(Notification, foreign.id).read is False


def test_delete_notification_removes_own_row(db, notifications) -> None:
    first = notifications[0]
    first_id = first.id

    delete_notification(notification_id=first_id, email=OWNER, db=db)

    assert db.get(Notification, first_id) is None
    with pytest.raises(HTTPException):
        delete_notification(notification_id=notifications[2].id, email=OWNER, db=db)
