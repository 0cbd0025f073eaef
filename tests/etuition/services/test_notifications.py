from sqlalchemy.exc import OperationalError

from etuition.models.notification import Notification
from etuition.services.notifications import notify


def test_notify_inserts_unread_notification(db) -> None:
    notification = notify(db, 'tutor@example.com', 'review', 'You received a 5-star review!', '/dashboard/tutor/reviews')

    assert notification is not None
    stored = db.query(Notification).one()
    assert stored.user_email == 'tutor@example.com'
    assert stored.read is False
    assert stored.link == '/dashboard/tutor/reviews'


def test_notify_swallows_database_failure(db, monkeypatch, caplog) -> None:
    def failing_commit():
        raise OperationalError('INSERT INTO notifications', {}, Exception('database is locked'))

    monkeypatch.setattr(db, 'commit', failing_commit)

    result = notify(db, 'tutor@example.com', 'message', 'You have a new message')

    assert result is None
    assert 'Failed to create message notification' in caplog.text
    monkeypatch.undo()
    assert db.query(Notification).count() == 0
