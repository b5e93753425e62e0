"""
Inquiry Service

Homeowners contact a company (optionally about one of its projects); the
company admin works the inquiry through its lifecycle.
"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from constants import InquiryStatus, NotificationType
from exceptions import NotFoundError, PermissionDeniedError, ValidationError
from models import Inquiry, User
from repositories import CompanyRepository, InquiryRepository, ProjectRepository
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class InquiryService:

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None):
        self.db = db
        self.inquiries = InquiryRepository(db)
        self.companies = CompanyRepository(db)
        self.projects = ProjectRepository(db)
        self.notifier = notifier or NotificationService(db)

    def create(self, user: User, company_id: str, message: str, project_id: Optional[str] = None,
               name: Optional[str] = None, email: Optional[str] = None, phone: Optional[str] = None,
               preferred_contact: str = 'email') -> Inquiry:
        """
        Send an inquiry to a company.

        Name and email default to the sender's account details.
        """
        company = self.companies.get_by_id(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        if company.admin_id == user.id:
            raise ValidationError("You cannot send an inquiry to your own company")

        if project_id:
            project = self.projects.get_by_id(project_id)
            if project is None or project.company_id != company.id:
                raise ValidationError("Project does not belong to this company", {"project": project_id})

        inquiry = Inquiry(
            user_id=user.id,
            company_id=company.id,
            project_id=project_id,
            name=name or user.name,
            email=(email or user.email).lower(),
            phone=phone or user.phone,
            message=message,
            preferred_contact=preferred_contact,
            status=InquiryStatus.PENDING.value,
        )
        self.inquiries.create(inquiry)
        self.notifier.notify(
            company.admin_id,
            NotificationType.INQUIRY_RECEIVED,
            "New inquiry",
            f"{inquiry.name} sent an inquiry to {company.name}",
            link="/dashboard/inquiries",
        )
        self.db.commit()
        self.notifier.publish_pending()

        logger.info(f"📨 Inquiry {inquiry.id} sent to company {company.id}")
        return inquiry

    def list_mine(self, user: User) -> List[Inquiry]:
        return self.inquiries.for_user(user.id)

    def list_for_company_admin(self, user: User, status: Optional[str] = None) -> List[Inquiry]:
        company = self.companies.get_by_admin(user.id)
        if company is None:
            raise NotFoundError("Company", message="Company not found")
        if status and status not in {s.value for s in InquiryStatus}:
            raise ValidationError(f"Unknown inquiry status: {status}", {"status": status})
        return self.inquiries.for_company(company.id, status)

    def update_status(self, inquiry_id: str, user: User, status: str,
                      notes: Optional[str] = None) -> Inquiry:
        """
        Move an inquiry along its lifecycle.

        Raises:
            PermissionDeniedError: Caller does not administer the inquiry's company
            ValidationError: Transition not allowed from the current status
        """
        inquiry = self.inquiries.get_by_id(inquiry_id)
        if inquiry is None:
            raise NotFoundError("Inquiry", inquiry_id)
        if inquiry.company is None or inquiry.company.admin_id != user.id:
            raise PermissionDeniedError()

        current = InquiryStatus(inquiry.status)
        target = InquiryStatus(status)
        allowed = InquiryStatus.allowed_transitions(current)
        # Terminal inquiries are closed, even to a same-status update
        if not allowed or (target != current and target not in allowed):
            raise ValidationError(
                f"Cannot move inquiry from {current.value} to {target.value}",
                {"status": target.value},
            )

        inquiry.status = target.value
        if notes is not None:
            inquiry.notes = notes
        self.notifier.notify(
            inquiry.user_id,
            NotificationType.INQUIRY_UPDATED,
            "Inquiry updated",
            f"{inquiry.company.name} marked your inquiry as {target.value.replace('_', ' ')}",
            link="/dashboard/my-inquiries",
        )
        self.db.commit()
        self.notifier.publish_pending()
        return inquiry
