"""
Notification repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from models import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def for_user(self, user_id: str, unread_only: bool = False, limit: Optional[int] = None) -> List[Notification]:
        query = self.query().filter(self.model.user_id == user_id)
        if unread_only:
            query = query.filter(self.model.is_read.is_(False))
        query = query.order_by(self.model.created_at.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def unread_count(self, user_id: str) -> int:
        return self.query().filter(
            self.model.user_id == user_id,
            self.model.is_read.is_(False)
        ).count()

    def mark_all_read(self, user_id: str) -> int:
        updated = self.query().filter(
            self.model.user_id == user_id,
            self.model.is_read.is_(False)
        ).update({self.model.is_read: True}, synchronize_session=False)
        self.db.flush()
        return updated
