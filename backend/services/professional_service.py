"""
Professional Service

Professional profiles (public listing, self-service upsert, admin
verification) and the professional's portfolio of affiliated companies and
projects.
"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from constants import SocketEvent, NotificationType
from exceptions import NotFoundError, PermissionDeniedError, ValidationError
from models import Professional, ProfessionalCompany, ProfessionalProject, User
from repositories import (
    ProfessionalRepository,
    ProfessionalCompanyRepository,
    ProfessionalProjectRepository,
)
from services.event_broadcaster import EventBroadcaster
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ProfessionalService:

    def __init__(self, db: Session, events: Optional[EventBroadcaster] = None):
        self.db = db
        self.events = events or EventBroadcaster()
        self.notifier = NotificationService(db, self.events)
        self.professionals = ProfessionalRepository(db)

    def list(self, search: Optional[str] = None, verified: Optional[bool] = None,
             service: Optional[str] = None) -> List[Professional]:
        return self.professionals.search(search=search, verified=verified, service=service)

    def get(self, professional_id: str) -> Professional:
        professional = self.professionals.get_by_id(professional_id)
        if professional is None:
            raise NotFoundError("Professional", professional_id)
        return professional

    def get_mine(self, user: User) -> Professional:
        professional = self.professionals.get_by_user(user.id)
        if professional is None:
            raise NotFoundError("Professional profile", message="Professional profile not found")
        return professional

    def upsert_mine(self, user: User, **fields) -> Professional:
        """
        Create or update the caller's professional profile.

        Queues professionalCreated or professionalUpdated for every socket.
        """
        location = fields.pop('location', None)
        professional = self.professionals.get_by_user(user.id)
        created = professional is None

        if created:
            professional = Professional(user_id=user.id, name=fields.pop('name', None) or user.name)
            self.professionals.create(professional)

        self.professionals.update(professional, **fields)
        if location is not None:
            professional.location = location
        self.db.commit()

        event = SocketEvent.PROFESSIONAL_CREATED if created else SocketEvent.PROFESSIONAL_UPDATED
        self.events.professional_changed(event, professional)
        logger.info(f"👷 Professional profile {'created' if created else 'updated'} for user {user.id}")
        return professional

    def set_verified(self, professional_id: str, is_verified: Optional[bool] = None) -> Professional:
        """Set or toggle verification; notifies the professional and broadcasts professionalVerified."""
        professional = self.get(professional_id)
        professional.is_verified = (not professional.is_verified) if is_verified is None else is_verified
        if professional.is_verified:
            self.notifier.notify(
                professional.user_id,
                NotificationType.ACCOUNT_VERIFIED,
                "Profile verified",
                "Your professional profile is now verified",
                link=f"/professionals/{professional.id}",
            )
        self.db.commit()
        self.notifier.publish_pending()
        self.events.professional_changed(SocketEvent.PROFESSIONAL_VERIFIED, professional)
        return professional

    def delete(self, professional_id: str) -> None:
        professional = self.get(professional_id)
        user_id = professional.user_id
        self.professionals.delete(professional)
        self.db.commit()
        self.events.professional_deleted(professional_id, user_id)
        logger.info(f"🗑️  Professional {professional_id} deleted")


class PortfolioService:
    """A professional's affiliated companies and portfolio projects."""

    def __init__(self, db: Session):
        self.db = db
        self.companies = ProfessionalCompanyRepository(db)
        self.projects = ProfessionalProjectRepository(db)

    def _owned(self, record, user: User, resource: str):
        if record is None:
            raise NotFoundError(resource)
        if record.owner_id != user.id:
            raise PermissionDeniedError()
        return record

    # Affiliated companies

    def list_companies(self, user: User) -> List[ProfessionalCompany]:
        return self.companies.for_owner(user.id)

    def create_company(self, user: User, **fields) -> ProfessionalCompany:
        company = ProfessionalCompany(owner_id=user.id, **fields)
        self.companies.create(company)
        self.db.commit()
        return company

    def update_company(self, company_id: str, user: User, **changes) -> ProfessionalCompany:
        company = self._owned(self.companies.get_by_id(company_id), user, "Company")
        self.companies.update(company, **changes)
        self.db.commit()
        return company

    def delete_company(self, company_id: str, user: User) -> None:
        company = self._owned(self.companies.get_by_id(company_id), user, "Company")
        self.companies.delete(company)
        self.db.commit()

    # Portfolio projects

    def _check_company(self, company_id: Optional[str], user: User):
        if company_id is None:
            return
        company = self.companies.get_by_id(company_id)
        if company is None or company.owner_id != user.id:
            raise ValidationError("Unknown portfolio company", {"companyId": company_id})

    def list_projects(self, user: User) -> List[ProfessionalProject]:
        return self.projects.for_owner(user.id)

    def create_project(self, user: User, **fields) -> ProfessionalProject:
        self._check_company(fields.get('company_id'), user)
        project = ProfessionalProject(owner_id=user.id, **fields)
        self.projects.create(project)
        self.db.commit()
        return project

    def update_project(self, project_id: str, user: User, **changes) -> ProfessionalProject:
        project = self._owned(self.projects.get_by_id(project_id), user, "Project")
        self._check_company(changes.get('company_id'), user)
        self.projects.update(project, **changes)
        self.db.commit()
        return project

    def delete_project(self, project_id: str, user: User) -> None:
        project = self._owned(self.projects.get_by_id(project_id), user, "Project")
        self.projects.delete(project)
        self.db.commit()

    def toggle_featured(self, project_id: str, user: User) -> ProfessionalProject:
        project = self._owned(self.projects.get_by_id(project_id), user, "Project")
        project.is_featured = not project.is_featured
        self.db.commit()
        return project
