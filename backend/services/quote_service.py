"""
Quote Service

Providers (company admins and professionals) submit, list and withdraw
quotes on open requirements.
"""
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constants import RequirementStatus, QuoteStatus, QuoteConfig, NotificationType
from exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from models import Quote, User
from repositories import CompanyRepository, QuoteRepository, RequirementRepository
from services.notification_service import NotificationService
from utils.logging_utils import log_operation

logger = logging.getLogger(__name__)


def validate_milestones(milestones: List[dict]) -> None:
    """
    Milestone percentages must each be non-negative and sum to at most 100.

    Raises:
        ValidationError: If the percentages are out of range
    """
    total = 0.0
    for milestone in milestones:
        percentage = float(milestone.get('percentage') or 0)
        if percentage < 0:
            raise ValidationError("Milestone percentage cannot be negative", {"milestones": milestone})
        total += percentage
    if total > QuoteConfig.MAX_MILESTONE_PERCENT:
        raise ValidationError(
            f"Milestone percentages add up to {total:g}%, more than {QuoteConfig.MAX_MILESTONE_PERCENT:g}%",
            {"milestones": total},
        )


class QuoteService:

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None):
        self.db = db
        self.quotes = QuoteRepository(db)
        self.requirements = RequirementRepository(db)
        self.companies = CompanyRepository(db)
        self.notifier = notifier or NotificationService(db)

    @log_operation("submit_quote")
    def submit(self, provider: User, requirement_id: str, design_proposal: str,
               estimated_budget: float, budget_breakdown: Optional[dict] = None,
               timeline: Optional[dict] = None, additional_notes: Optional[str] = None,
               terms: Optional[dict] = None) -> Quote:
        """
        Submit a quote on an open requirement.

        Raises:
            NotFoundError: Unknown requirement
            ConflictError: Requirement not open, provider already quoted, or the
                requirement takes a single quote and already has one
            ValidationError: Non-positive budget or milestones over 100%
        """
        requirement = self.requirements.get_by_id(requirement_id)
        if requirement is None:
            raise NotFoundError("Requirement", requirement_id)
        if requirement.status != RequirementStatus.OPEN.value:
            raise ConflictError("This requirement is no longer accepting quotes", resource="requirement")
        if requirement.homeowner_id == provider.id:
            raise PermissionDeniedError("You cannot quote on your own requirement")

        if estimated_budget is None or estimated_budget <= 0:
            raise ValidationError("Estimated budget must be greater than zero", {"estimatedBudget": estimated_budget})

        timeline = timeline or {}
        milestones = timeline.get('milestones') or []
        validate_milestones(milestones)

        if self.quotes.get_for_provider(requirement.id, provider.id) is not None:
            raise ConflictError("You have already submitted a quote for this requirement", resource="quote")
        if not requirement.request_multiple_quotes and self.quotes.count_active(requirement.id) > 0:
            raise ConflictError("This requirement accepts a single quote and already has one", resource="quote")

        company = self.companies.get_by_admin(provider.id)
        quote = Quote(
            requirement_id=requirement.id,
            provider_id=provider.id,
            company_id=company.id if company else None,
            design_proposal=design_proposal,
            estimated_budget=estimated_budget,
            budget_breakdown=budget_breakdown or {},
            timeline_start=timeline.get('startDate'),
            timeline_end=timeline.get('endDate'),
            milestones=milestones,
            additional_notes=additional_notes or '',
            terms=terms or {},
            status=QuoteStatus.SUBMITTED.value,
            valid_until=datetime.utcnow() + timedelta(days=QuoteConfig.VALIDITY_DAYS),
        )
        try:
            self.quotes.create(quote)
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("You have already submitted a quote for this requirement", resource="quote")

        self.notifier.notify(
            requirement.homeowner_id,
            NotificationType.QUOTE_RECEIVED,
            "New quote received",
            f"{company.name if company else provider.name} quoted ₹{estimated_budget:,.0f} for \"{requirement.title}\"",
            link=f"/dashboard/requirements/{requirement.id}/quotes",
        )
        self.db.commit()
        self.notifier.publish_pending()

        logger.info(f"💬 Quote {quote.id} submitted on requirement {requirement.id}")
        return quote

    def list_mine(self, provider: User) -> List[Quote]:
        return self.quotes.for_provider(provider.id)

    def withdraw(self, quote_id: str, provider: User) -> Quote:
        """Withdraw a quote that is still submitted."""
        quote = self.quotes.get_by_id(quote_id)
        if quote is None:
            raise NotFoundError("Quote", quote_id)
        if quote.provider_id != provider.id:
            raise PermissionDeniedError()
        if quote.status != QuoteStatus.SUBMITTED.value:
            raise ConflictError(f"Only submitted quotes can be withdrawn (quote is {quote.status})", resource="quote")

        quote.status = QuoteStatus.WITHDRAWN.value
        self.db.commit()
        logger.info(f"Quote {quote.id} withdrawn")
        return quote
