"""
Professional repository for professional profiles and portfolios.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from models import Professional, ProfessionalCompany, ProfessionalProject
from .base_repository import BaseRepository
from .listing_specifications import ProfessionalSearchSpec, VerifiedSpec
from .specifications import all_of


class ProfessionalRepository(BaseRepository[Professional]):
    """Repository for Professional model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Professional)

    def get_by_user(self, user_id: str) -> Optional[Professional]:
        return self.query().filter(self.model.user_id == user_id).first()

    def search(self, search: Optional[str] = None, verified: Optional[bool] = None,
               service: Optional[str] = None) -> List[Professional]:
        """
        List professionals, best rated first.

        The service filter runs in memory because services are a JSON list.
        """
        spec = all_of([
            ProfessionalSearchSpec(search) if search and search.strip() else None,
            VerifiedSpec(Professional, verified) if verified is not None else None,
        ])
        professionals = self.find(spec, order_by=[self.model.rating.desc(), self.model.created_at.desc()])
        if service:
            wanted = service.strip().lower()
            professionals = [
                p for p in professionals
                if any(wanted == s.lower() for s in (p.services or []) + (p.specialties or []))
            ]
        return professionals


class ProfessionalCompanyRepository(BaseRepository[ProfessionalCompany]):

    def __init__(self, db: Session):
        super().__init__(db, ProfessionalCompany)

    def for_owner(self, owner_id: str) -> List[ProfessionalCompany]:
        return self.query().filter(
            self.model.owner_id == owner_id
        ).order_by(self.model.created_at.desc()).all()


class ProfessionalProjectRepository(BaseRepository[ProfessionalProject]):

    def __init__(self, db: Session):
        super().__init__(db, ProfessionalProject)

    def for_owner(self, owner_id: str, public_only: bool = False) -> List[ProfessionalProject]:
        """Featured projects first, then newest."""
        query = self.query().filter(self.model.owner_id == owner_id)
        if public_only:
            query = query.filter(self.model.is_public.is_(True))
        return query.order_by(self.model.is_featured.desc(), self.model.created_at.desc()).all()
