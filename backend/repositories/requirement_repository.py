"""
Requirement and quote repositories.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from models import Requirement, Quote, Company
from .base_repository import BaseRepository
from .listing_specifications import open_requirement_filter, RequirementSearchSpec, RequirementStatusSpec
from .specifications import all_of


class RequirementRepository(BaseRepository[Requirement]):
    """Repository for Requirement model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Requirement)

    def for_homeowner(self, homeowner_id: str) -> List[Requirement]:
        """A homeowner's requirements, newest first, with quotes preloaded for counting."""
        return self.query().options(selectinload(self.model.quotes)).filter(
            self.model.homeowner_id == homeowner_id
        ).order_by(self.model.created_at.desc()).all()

    def list_open(self, service_type: Optional[str] = None, location: Optional[str] = None,
                  min_budget: Optional[int] = None, max_budget: Optional[int] = None,
                  priority: Optional[str] = None) -> List[Requirement]:
        spec = open_requirement_filter(service_type, location, min_budget, max_budget, priority)
        return self.query().options(
            joinedload(self.model.homeowner),
            selectinload(self.model.quotes),
        ).filter(spec.to_sql_filter()).order_by(self.model.created_at.desc()).all()

    def search(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Requirement]:
        """Admin listing of every homeowner requirement."""
        spec = all_of([
            RequirementStatusSpec(status) if status else None,
            RequirementSearchSpec(search) if search and search.strip() else None,
        ])
        return self.query().options(joinedload(self.model.homeowner)).filter(
            spec.to_sql_filter()
        ).order_by(self.model.created_at.desc()).all()

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.query(self.model.status, func.count(self.model.id)).group_by(self.model.status).all()
        return {status: count for status, count in rows}

    def recent(self, limit: int) -> List[Requirement]:
        return self.query().options(joinedload(self.model.homeowner)).order_by(
            self.model.created_at.desc()
        ).limit(limit).all()


class QuoteRepository(BaseRepository[Quote]):
    """Repository for Quote model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Quote)

    def for_requirement(self, requirement_id: str) -> List[Quote]:
        """Quotes on a requirement, cheapest first."""
        return self.query().options(
            joinedload(self.model.provider),
            joinedload(self.model.company),
        ).filter(
            self.model.requirement_id == requirement_id
        ).order_by(self.model.estimated_budget.asc(), self.model.created_at.asc()).all()

    def for_provider(self, provider_id: str, since: Optional[datetime] = None) -> List[Quote]:
        query = self.query().options(joinedload(self.model.requirement)).filter(
            self.model.provider_id == provider_id
        )
        if since is not None:
            query = query.filter(self.model.created_at >= since)
        return query.order_by(self.model.created_at.desc()).all()

    def get_for_provider(self, requirement_id: str, provider_id: str) -> Optional[Quote]:
        return self.query().filter(
            self.model.requirement_id == requirement_id,
            self.model.provider_id == provider_id
        ).first()

    def count_active(self, requirement_id: str) -> int:
        """Quotes on a requirement that were not withdrawn."""
        return self.query().filter(
            self.model.requirement_id == requirement_id,
            self.model.status != 'withdrawn'
        ).count()

    def submitted_for_requirement(self, requirement_id: str) -> List[Quote]:
        return self.query().filter(
            self.model.requirement_id == requirement_id,
            self.model.status == 'submitted'
        ).all()

    def count_by_status(self) -> Dict[str, int]:
        rows = self.db.query(self.model.status, func.count(self.model.id)).group_by(self.model.status).all()
        return {status: count for status, count in rows}

    def accepted_revenue(self) -> float:
        total = self.db.query(func.coalesce(func.sum(self.model.estimated_budget), 0)).filter(
            self.model.status == 'accepted'
        ).scalar()
        return float(total or 0)

    def top_companies_by_acceptance(self, limit: int) -> List[tuple]:
        """(company name, accepted quote count) pairs, most accepted first."""
        return self.db.query(Company.name, func.count(self.model.id)).select_from(self.model).join(
            Company, Company.id == self.model.company_id
        ).filter(
            self.model.status == 'accepted'
        ).group_by(Company.id, Company.name).order_by(func.count(self.model.id).desc()).limit(limit).all()
