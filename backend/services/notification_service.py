"""
Notification Service

Creates in-app notifications and queues their realtime push.
"""
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from constants import NotificationType
from exceptions import NotFoundError, PermissionDeniedError
from models import Notification
from repositories import NotificationRepository
from services.event_broadcaster import EventBroadcaster

logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(self, db: Session, events: Optional[EventBroadcaster] = None):
        self.db = db
        self.events = events
        self.notifications = NotificationRepository(db)
        self._pending: List[Notification] = []

    def notify(self, user_id: str, type: NotificationType, title: str,
               message: str = '', link: Optional[str] = None) -> Notification:
        """
        Add a notification to the current transaction.

        The caller commits; the realtime push is queued on the broadcaster
        and goes out when the route flushes it.
        """
        notification = Notification(
            user_id=user_id,
            type=type.value if isinstance(type, NotificationType) else type,
            title=title,
            message=message,
            link=link,
        )
        self.notifications.create(notification)
        if self.events is not None:
            self._pending.append(notification)
        logger.debug(f"🔔 Notification {notification.type} for user {user_id}")
        return notification

    def publish_pending(self):
        """Queue realtime pushes for notifications created since the last commit."""
        if self.events is None:
            return
        for notification in self._pending:
            self.events.notification_created(notification)
        self._pending.clear()

    def list_for_user(self, user_id: str, unread_only: bool = False,
                      limit: Optional[int] = None) -> Tuple[List[Notification], int]:
        notifications = self.notifications.for_user(user_id, unread_only=unread_only, limit=limit)
        return notifications, self.notifications.unread_count(user_id)

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self.notifications.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        if notification.user_id != user_id:
            raise PermissionDeniedError()
        notification.is_read = True
        self.db.commit()
        return notification

    def mark_all_read(self, user_id: str) -> int:
        updated = self.notifications.mark_all_read(user_id)
        self.db.commit()
        return updated
