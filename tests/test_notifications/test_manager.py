"""Tests for NotificationManager."""

from datetime import datetime

import pytest

from libraryhub.db.models import Notification
from libraryhub.db.repository import NotificationRepository
from libraryhub.db.schemas import NotificationStatus
from libraryhub.errors import AlreadySentError, DomainStateError, NotFoundError
from libraryhub.notifications import NotificationManager

NOW = datetime(2025, 3, 10, 12, 0, 0)


@pytest.fixture
def manager(db):
    """Create a NotificationManager with test database."""
    return NotificationManager(db)


@pytest.fixture
def notification(db, book, reader, lending) -> Notification:
    """A pending notification for a borrowed book."""
    lending.borrow_book(book.id, reader.id, now=NOW)
    with db.get_session() as session:
        return NotificationRepository(session).add(
            Notification(reader_id=reader.id, book_id=book.id, message="Please return it")
        )


class TestQueries:
    """Tests for reading notifications."""

    def test_get_notification(self, manager, notification):
        found = manager.get_notification(notification.id)
        assert found.status == NotificationStatus.PENDING.value

    def test_get_missing_notification(self, manager):
        assert manager.get_notification("missing") is None

    def test_list_notifications(self, manager, notification):
        assert [n.id for n in manager.list_notifications()] == [notification.id]


class TestMarkAsSent:
    """Tests for recording delivery."""

    def test_mark_as_sent(self, manager, notification):
        manager.mark_as_sent(notification.id, now=NOW)

        stored = manager.get_notification(notification.id)
        assert stored.status == NotificationStatus.SENT.value
        assert stored.sent_at == NOW

    def test_mark_as_sent_twice(self, manager, notification):
        manager.mark_as_sent(notification.id, now=NOW)

        with pytest.raises(AlreadySentError):
            manager.mark_as_sent(notification.id)

    def test_mark_dismissed_as_sent(self, manager, notification):
        manager.dismiss(notification.id)

        with pytest.raises(DomainStateError):
            manager.mark_as_sent(notification.id)
        assert manager.get_notification(notification.id).sent_at is None

    def test_mark_missing(self, manager):
        with pytest.raises(NotFoundError) as exc_info:
            manager.mark_as_sent("missing")
        assert exc_info.value.entity == "Notification"


class TestDismiss:
    """Tests for dismissing."""

    def test_dismiss(self, manager, notification):
        manager.dismiss(notification.id)
        assert manager.get_notification(notification.id).status == "dismissed"

    def test_dismiss_twice(self, manager, notification):
        manager.dismiss(notification.id)
        manager.dismiss(notification.id)
        assert manager.get_notification(notification.id).status == "dismissed"

    def test_dismiss_missing(self, manager):
        with pytest.raises(NotFoundError):
            manager.dismiss("missing")


class TestDelete:
    """Tests for deleting."""

    def test_delete_notification(self, manager, notification):
        manager.delete_notification(notification.id)
        assert manager.get_notification(notification.id) is None

    def test_delete_leaves_loan_alone(self, manager, catalog, notification, book, reader):
        manager.delete_notification(notification.id)

        stored = catalog.get_book(book.id)
        assert stored.borrower_id == reader.id

    def test_delete_missing(self, manager):
        with pytest.raises(NotFoundError):
            manager.delete_notification("missing")
