"""Notification manager for overdue-return notifications."""

import logging
from datetime import datetime
from typing import Optional

from ..db.models import Notification
from ..db.repository import NotificationRepository
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError

logger = logging.getLogger(__name__)


class NotificationManager:
    """Manages the lifecycle of return notifications."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize notification manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        """Get a notification by ID."""
        with self.db.get_session() as session:
            return NotificationRepository(session).get(notification_id)

    def list_notifications(self) -> list[Notification]:
        """List all notifications, oldest first."""
        with self.db.get_session() as session:
            return NotificationRepository(session).get_all()

    def mark_as_sent(
        self, notification_id: str, now: Optional[datetime] = None
    ) -> Notification:
        """Record that a notification was delivered.

        Raises:
            NotFoundError: No notification with that ID
            AlreadySentError: It was already sent
            DomainStateError: It was dismissed
        """
        with self.db.get_session() as session:
            repo = NotificationRepository(session)
            notification = repo.get(notification_id)
            if not notification:
                raise NotFoundError("Notification", notification_id)

            notification.mark_as_sent(now=now)
            repo.update(notification)
            logger.info("Notification %s marked as sent", notification_id)
            return notification

    def dismiss(self, notification_id: str) -> Notification:
        """Dismiss a notification. Dismissing twice is not an error.

        Raises:
            NotFoundError: No notification with that ID
        """
        with self.db.get_session() as session:
            repo = NotificationRepository(session)
            notification = repo.get(notification_id)
            if not notification:
                raise NotFoundError("Notification", notification_id)

            notification.dismiss()
            repo.update(notification)
            logger.info("Notification %s dismissed", notification_id)
            return notification

    def delete_notification(self, notification_id: str) -> None:
        """Delete a notification.

        The related book's loan state is not touched.

        Raises:
            NotFoundError: No notification with that ID
        """
        with self.db.get_session() as session:
            repo = NotificationRepository(session)
            notification = repo.get(notification_id)
            if not notification:
                raise NotFoundError("Notification", notification_id)

            repo.delete(notification)
            logger.info(
                "Deleted notification %s for book %s",
                notification_id,
                notification.book_id,
            )
