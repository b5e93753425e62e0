"""
Admin Service

Moderation operations available to admins: platform overview counts, user
verification and removal.
"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from constants import NotificationType, RequirementStatus
from exceptions import NotFoundError, ValidationError
from models import (
    User,
    Professional,
    Company,
    Project,
    Requirement,
    Quote,
    Message,
    Review,
)
from repositories import (
    UserRepository,
    ProfessionalRepository,
    ConversationRepository,
    ReviewRepository,
    ProjectRepository,
)
from services.event_broadcaster import EventBroadcaster
from services.notification_service import NotificationService
from services.project_service import refresh_ratings
from utils.logging_utils import log_operation

logger = logging.getLogger(__name__)


class AdminService:

    def __init__(self, db: Session, events: Optional[EventBroadcaster] = None):
        self.db = db
        self.events = events or EventBroadcaster()
        self.notifier = NotificationService(db, self.events)
        self.users = UserRepository(db)
        self.professionals = ProfessionalRepository(db)
        self.conversations = ConversationRepository(db)
        self.reviews = ReviewRepository(db)
        self.projects = ProjectRepository(db)

    def overview(self) -> dict:
        """
        Row counts across the marketplace.

        'projects' counts showcase projects, 'requirements' homeowner
        requirements, 'proposals' quotes. Payments are not part of this
        service and always count zero.
        """
        return {
            "users": self.users.count(),
            "professionals": self.professionals.count(),
            "companies": self.db.query(Company).count(),
            "projects": self.db.query(Project).count(),
            "requirements": self.db.query(Requirement).count(),
            "proposals": self.db.query(Quote).count(),
            "messages": self.db.query(Message).count(),
            "reviews": self.db.query(Review).count(),
            "payments": 0,
        }

    def list_users(self, search: Optional[str] = None, role: Optional[str] = None,
                   verified: Optional[bool] = None) -> List[User]:
        return self.users.search(search=search, role=role, verified=verified)

    def set_user_verified(self, user_id: str, is_verified: Optional[bool] = None) -> User:
        """Set or toggle a user's verification flag; the user is told when verified."""
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        user.is_verified = (not user.is_verified) if is_verified is None else is_verified
        if user.is_verified:
            self.notifier.notify(
                user.id,
                NotificationType.ACCOUNT_VERIFIED,
                "Account verified",
                "Your account has been verified by an administrator",
            )
        self.db.commit()
        self.notifier.publish_pending()
        logger.info(f"User {user.id} verified={user.is_verified}")
        return user

    def _release_selected_quotes(self, provider: User) -> int:
        """
        Detach requirements from the provider's selected quotes before they are deleted.

        In-progress requirements go back to open so the homeowner can pick
        another quote. Returns how many requirements were reopened.
        """
        quote_ids = [quote.id for quote in provider.quotes]
        if not quote_ids:
            return 0
        reopened = 0
        selecting = self.db.query(Requirement).filter(Requirement.selected_quote_id.in_(quote_ids)).all()
        for requirement in selecting:
            requirement.selected_quote_id = None
            if requirement.status == RequirementStatus.IN_PROGRESS.value:
                requirement.status = RequirementStatus.OPEN.value
                reopened += 1
        return reopened

    @log_operation("delete_user")
    def delete_user(self, user_id: str, acting_admin: User) -> None:
        """
        Delete a user and everything they own.

        Removes their company (with its projects, reviews and inquiries),
        professional profile and portfolio, requirements and the quotes on
        them, their own quotes, inquiries, notifications, reviews, and every
        conversation they take part in. Ratings of projects they reviewed are
        recomputed.
        Requirements that had selected one of their quotes lose the selection
        and reopen if they were in progress.

        Raises:
            ValidationError: An admin tried to delete their own account
        """
        if user_id == acting_admin.id:
            raise ValidationError("You cannot delete your own account")

        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        professional: Optional[Professional] = user.professional
        professional_id = professional.id if professional else None
        reviewed_projects = self.reviews.project_ids_reviewed_by(user.id)

        reopened = self._release_selected_quotes(user)
        removed_conversations = self.conversations.delete_for_user(user.id)
        self.users.delete(user)

        for project_id in reviewed_projects:
            project = self.projects.get_by_id(project_id)
            if project is not None:
                refresh_ratings(self.db, project)

        self.db.commit()

        if professional_id:
            self.events.professional_deleted(professional_id, user_id)
        logger.warning(
            f"🗑️  User {user_id} deleted by admin {acting_admin.id} "
            f"({removed_conversations} conversation(s) removed, {reopened} requirement(s) reopened)"
        )
