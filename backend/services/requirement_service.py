"""
Requirement Service

Homeowner requirements (requests for quotes): posting, browsing by
providers, quote selection and cancellation.

Requirement lifecycle:
    open → in_progress (a quote was selected) → completed
    open → cancelled
Only open requirements accept quotes or a selection.
"""
from datetime import date
from typing import List, Optional
import logging
import math

from sqlalchemy.orm import Session

from constants import (
    BudgetConfig,
    UserRole,
    RequirementStatus,
    RequirementPriority,
    QuoteStatus,
    ServiceType,
    NotificationType,
)
from exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from models import Requirement, Quote, User
from repositories import RequirementRepository, QuoteRepository
from services.notification_service import NotificationService
from utils.budget import parse_budget_band
from utils.logging_utils import log_operation

logger = logging.getLogger(__name__)


def parse_budget(raw) -> int:
    """
    Read a requirement budget: a rupee amount or a budget band label.

    Bands resolve to their upper bound (lower bound for open-ended bands).

    Raises:
        ValidationError: Negative, non-finite, out of range or unreadable budget
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("Budget is required", {"budget": raw})
    try:
        value = float(raw)
    except (TypeError, ValueError):
        low, high = parse_budget_band(str(raw))
        amount = high if high is not None else low
        if amount is None:
            raise ValidationError(f"Invalid budget: {raw}", {"budget": raw})
    else:
        if not math.isfinite(value):
            raise ValidationError(f"Invalid budget: {raw}", {"budget": raw})
        amount = int(value)
    if amount < 0:
        raise ValidationError("Budget cannot be negative", {"budget": raw})
    if amount > BudgetConfig.MAX_AMOUNT:
        raise ValidationError("Budget is too large", {"budget": raw})
    return amount


def _parse_date(value: Optional[str], field: str) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date for {field}: {value}", {field: value})


class RequirementService:

    def __init__(self, db: Session, notifier: Optional[NotificationService] = None):
        self.db = db
        self.requirements = RequirementRepository(db)
        self.quotes = QuoteRepository(db)
        self.notifier = notifier or NotificationService(db)

    @log_operation("create_requirement")
    def create(self, homeowner: User, service_type: str, title: str, description: str,
               location: str, budget, timeline: Optional[dict] = None,
               priority: str = RequirementPriority.MEDIUM.value,
               request_multiple_quotes: bool = True,
               attachments: Optional[List[str]] = None, **details) -> Requirement:
        """
        Post a requirement.

        Args:
            homeowner: The posting user
            service_type: One of ServiceType
            timeline: {"startDate": "YYYY-MM-DD", "endDate": "YYYY-MM-DD"}
            attachments: URLs of already stored uploads
            **details: Optional building_type, size, bedrooms, bathrooms,
                features, design_preferences

        Raises:
            ValidationError: Missing text fields, unknown service type or
                priority, bad budget or timeline
        """
        missing = [name for name, value in (("title", title), ("description", description),
                                            ("location", location)) if not (value or '').strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}",
                                  {name: "required" for name in missing})

        if service_type not in {s.value for s in ServiceType}:
            raise ValidationError(f"Unknown service type: {service_type}", {"serviceType": service_type})
        if priority not in {p.value for p in RequirementPriority}:
            raise ValidationError(f"Unknown priority: {priority}", {"priority": priority})

        timeline = timeline or {}
        start = _parse_date(timeline.get('startDate'), 'startDate')
        end = _parse_date(timeline.get('endDate'), 'endDate')
        if start and end and end < start:
            raise ValidationError("Timeline end date is before its start date", {"timeline": timeline})

        requirement = Requirement(
            homeowner_id=homeowner.id,
            service_type=service_type,
            title=title.strip(),
            description=description.strip(),
            location=location.strip(),
            budget=parse_budget(budget),
            timeline_start=start,
            timeline_end=end,
            priority=priority,
            request_multiple_quotes=request_multiple_quotes,
            attachments=attachments or [],
            **{k: v for k, v in details.items() if v is not None},
        )
        self.requirements.create(requirement)
        self.db.commit()
        logger.info(f"📋 Requirement {requirement.id} posted ({service_type}, ₹{requirement.budget:,})")
        return requirement

    def list_mine(self, homeowner: User) -> List[Requirement]:
        return self.requirements.for_homeowner(homeowner.id)

    def list_open(self, service_type: Optional[str] = None, location: Optional[str] = None,
                  min_budget: Optional[int] = None, max_budget: Optional[int] = None,
                  priority: Optional[str] = None) -> List[Requirement]:
        return self.requirements.list_open(service_type, location, min_budget, max_budget, priority)

    def list_all(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Requirement]:
        return self.requirements.search(status=status, search=search)

    def _get(self, requirement_id: str) -> Requirement:
        requirement = self.requirements.get_by_id(requirement_id)
        if requirement is None:
            raise NotFoundError("Requirement", requirement_id)
        return requirement

    def _get_owned(self, requirement_id: str, user: User) -> Requirement:
        requirement = self._get(requirement_id)
        if requirement.homeowner_id != user.id:
            raise PermissionDeniedError()
        return requirement

    def get_for_owner(self, requirement_id: str, user: User) -> Requirement:
        """Full requirement detail for its homeowner or an admin."""
        requirement = self._get(requirement_id)
        if user.role != UserRole.ADMIN.value and requirement.homeowner_id != user.id:
            raise PermissionDeniedError()
        return requirement

    def get_public(self, requirement_id: str) -> Requirement:
        """Requirement detail for providers; only open requirements are visible."""
        requirement = self._get(requirement_id)
        if requirement.status != RequirementStatus.OPEN.value:
            raise NotFoundError("Requirement", requirement_id, message="Requirement is no longer open")
        return requirement

    def quotes_for(self, requirement_id: str, user: User) -> List[Quote]:
        self._get_owned(requirement_id, user)
        return self.quotes.for_requirement(requirement_id)

    @log_operation("select_quote")
    def select_quote(self, requirement_id: str, quote_id: str, user: User) -> Requirement:
        """
        Accept one quote for an open requirement.

        The chosen quote becomes accepted, every other submitted quote is
        rejected, and the requirement moves to in_progress. Providers are
        notified of the outcome.

        Raises:
            ConflictError: Requirement not open, or quote no longer submitted
            NotFoundError: Quote does not belong to the requirement
        """
        requirement = self._get_owned(requirement_id, user)
        if requirement.status != RequirementStatus.OPEN.value:
            raise ConflictError(f"Requirement is {requirement.status}, not open", resource="requirement")

        quote = self.quotes.get_by_id(quote_id)
        if quote is None or quote.requirement_id != requirement.id:
            raise NotFoundError("Quote", quote_id, message="Quote not found for this requirement")
        if quote.status != QuoteStatus.SUBMITTED.value:
            raise ConflictError(f"Quote is {quote.status}", resource="quote")

        for other in self.quotes.submitted_for_requirement(requirement.id):
            if other.id == quote.id:
                continue
            other.status = QuoteStatus.REJECTED.value
            self.notifier.notify(
                other.provider_id,
                NotificationType.QUOTE_REJECTED,
                "Quote not selected",
                f"Another quote was selected for \"{requirement.title}\"",
                link="/dashboard/quotes",
            )

        quote.status = QuoteStatus.ACCEPTED.value
        requirement.status = RequirementStatus.IN_PROGRESS.value
        requirement.selected_quote_id = quote.id
        self.notifier.notify(
            quote.provider_id,
            NotificationType.QUOTE_ACCEPTED,
            "Quote accepted",
            f"Your quote for \"{requirement.title}\" was accepted",
            link="/dashboard/quotes",
        )
        self.db.commit()
        self.notifier.publish_pending()

        logger.info(f"✅ Quote {quote.id} selected for requirement {requirement.id}")
        return requirement

    def cancel(self, requirement_id: str, user: User) -> Requirement:
        """Cancel an open requirement and reject its pending quotes."""
        requirement = self._get_owned(requirement_id, user)
        if requirement.status != RequirementStatus.OPEN.value:
            raise ConflictError(f"Requirement is {requirement.status}, not open", resource="requirement")

        for quote in self.quotes.submitted_for_requirement(requirement.id):
            quote.status = QuoteStatus.REJECTED.value
            self.notifier.notify(
                quote.provider_id,
                NotificationType.QUOTE_REJECTED,
                "Requirement cancelled",
                f"\"{requirement.title}\" was cancelled by the homeowner",
                link="/dashboard/quotes",
            )
        requirement.status = RequirementStatus.CANCELLED.value
        self.db.commit()
        self.notifier.publish_pending()
        logger.info(f"Requirement {requirement.id} cancelled")
        return requirement
