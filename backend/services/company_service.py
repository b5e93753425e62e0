"""
Company Service

Company profile management for company admins, public company listings and
admin verification.
"""
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constants import UserRole, NotificationType
from exceptions import ConflictError, NotFoundError, PermissionDeniedError
from models import Company, User
from repositories import CompanyRepository
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class CompanyService:

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None):
        self.db = db
        self.companies = CompanyRepository(db)
        self.notifier = notifier or NotificationService(db)

    def create(self, admin: User, **fields) -> Company:
        """
        Create the company owned by a company admin.

        Raises:
            ConflictError: The admin already owns a company
        """
        if self.companies.get_by_admin(admin.id) is not None:
            raise ConflictError("Company already exists for this user", resource="company")

        company = Company(admin_id=admin.id, **{k: v for k, v in fields.items() if v is not None})
        try:
            self.companies.create(company)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Company already exists for this user", resource="company")

        logger.info(f"🏢 Company created: {company.name} ({company.id})")
        return company

    def get_mine(self, admin: User) -> Company:
        company = self.companies.get_by_admin(admin.id)
        if company is None:
            raise NotFoundError("Company", message="Company not found")
        return company

    def update_mine(self, admin: User, **changes) -> Company:
        company = self.get_mine(admin)
        self.companies.update(company, **changes)
        self.db.commit()
        return company

    def delete_mine(self, admin: User) -> None:
        company = self.get_mine(admin)
        self.companies.delete(company)
        self.db.commit()
        logger.info(f"🗑️  Company {company.id} deleted by its admin")

    def list(self, search: Optional[str] = None, verified: Optional[bool] = None) -> List[Company]:
        return self.companies.search(search=search, verified=verified)

    def get_detail(self, company_id: str) -> Company:
        company = self.companies.get_with_projects(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        return company

    def delete(self, company_id: str, user: User) -> None:
        """Delete a company as its owner or as an admin."""
        company = self.companies.get_by_id(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        if user.role != UserRole.ADMIN.value and company.admin_id != user.id:
            raise PermissionDeniedError()
        self.companies.delete(company)
        self.db.commit()
        logger.info(f"🗑️  Company {company_id} deleted by {user.role} {user.id}")

    def set_verified(self, company_id: str, is_verified: Optional[bool] = None) -> Company:
        """
        Set or toggle a company's verification flag.

        The company admin is notified when the company becomes verified.
        """
        company = self.companies.get_by_id(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)

        company.is_verified = (not company.is_verified) if is_verified is None else is_verified
        if company.is_verified:
            self.notifier.notify(
                company.admin_id,
                NotificationType.ACCOUNT_VERIFIED,
                "Company verified",
                f"{company.name} is now verified",
                link=f"/companies/{company.id}",
            )
        self.db.commit()
        self.notifier.publish_pending()
        logger.info(f"Company {company.id} verified={company.is_verified}")
        return company
