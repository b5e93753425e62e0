"""
User repository for account lookups and moderation listings.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import User
from .base_repository import BaseRepository
from .listing_specifications import user_filter


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Find a user by email (emails are stored lowercased)."""
        return self.query().filter(self.model.email == email.strip().lower()).first()

    def email_taken(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def search(self, search: Optional[str] = None, role: Optional[str] = None,
               verified: Optional[bool] = None) -> List[User]:
        """
        List users for moderation, newest first.

        Args:
            search: Case-insensitive substring of name or email
            role: Exact role
            verified: Verification flag

        Returns:
            Matching users
        """
        return self.find(user_filter(search, role, verified), order_by=self.model.created_at.desc())

    def count_by_role(self) -> Dict[str, int]:
        rows = self.db.query(self.model.role, func.count(self.model.id)).group_by(self.model.role).all()
        return {role: count for role, count in rows}

    def created_between(self, start: datetime, end: datetime) -> int:
        return self.query().filter(
            self.model.created_at >= start,
            self.model.created_at < end
        ).count()
