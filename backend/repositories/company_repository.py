"""
Company repository for company profiles and their showcase projects.
"""

from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from models import Company
from .base_repository import BaseRepository
from .listing_specifications import CompanySearchSpec, VerifiedSpec
from .specifications import all_of


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Company)

    def get_by_admin(self, admin_id: str) -> Optional[Company]:
        """Get the company owned by a company admin, if any."""
        return self.query().filter(self.model.admin_id == admin_id).first()

    def get_with_projects(self, company_id: str) -> Optional[Company]:
        return self.query().options(
            selectinload(self.model.projects)
        ).filter(self.model.id == company_id).first()

    def search(self, search: Optional[str] = None, verified: Optional[bool] = None) -> List[Company]:
        """List companies, best rated first then newest."""
        spec = all_of([
            CompanySearchSpec(search) if search and search.strip() else None,
            VerifiedSpec(Company, verified) if verified is not None else None,
        ])
        return self.find(spec, order_by=[self.model.rating.desc(), self.model.created_at.desc()])

    def top_rated(self, limit: int) -> List[Company]:
        """Verified companies ordered by rating and review count."""
        return self.find(
            VerifiedSpec(Company, True),
            order_by=[self.model.rating.desc(), self.model.review_count.desc()],
            limit=limit,
        )
