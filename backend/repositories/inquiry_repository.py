"""
Inquiry repository for homeowner-to-company contact requests.
"""

from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from models import Inquiry
from .base_repository import BaseRepository


class InquiryRepository(BaseRepository[Inquiry]):
    """Repository for Inquiry model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Inquiry)

    def _with_relations(self):
        return self.query().options(
            joinedload(self.model.user),
            joinedload(self.model.company),
            joinedload(self.model.project),
        )

    def for_user(self, user_id: str) -> List[Inquiry]:
        return self._with_relations().filter(
            self.model.user_id == user_id
        ).order_by(self.model.created_at.desc()).all()

    def for_company(self, company_id: str, status: Optional[str] = None) -> List[Inquiry]:
        query = self._with_relations().filter(self.model.company_id == company_id)
        if status:
            query = query.filter(self.model.status == status)
        return query.order_by(self.model.created_at.desc()).all()
