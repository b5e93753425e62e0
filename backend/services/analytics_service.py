"""
Analytics Service - Marketplace dashboards

Builds the admin dashboard (platform-wide counts, growth, proposal
acceptance) and the provider dashboard (proposal success, earnings and
project performance over a time range).
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Tuple

from constants import AnalyticsRange, UserRole, RequirementStatus, QuoteStatus, ProjectStatus
from exceptions import ValidationError
from models import User, Company, Project, ProfessionalProject, Inquiry
from repositories import (
    UserRepository,
    CompanyRepository,
    RequirementRepository,
    QuoteRepository,
)
from repositories.listing_specifications import VerifiedSpec

logger = logging.getLogger(__name__)

TOP_COMPANIES = 5
RECENT_ITEMS = 5
RECENT_ACTIVITY = 10


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift a first-of-month datetime by a number of months (may be negative)."""
    index = moment.year * 12 + (moment.month - 1) + months
    return moment.replace(year=index // 12, month=index % 12 + 1)


def month_windows(start: datetime, end: datetime) -> List[Tuple[str, datetime, datetime]]:
    """
    Calendar months overlapping [start, end], oldest first.

    Returns:
        (label like 'Mar 2026', month start, next month start) tuples
    """
    windows = []
    cursor = month_start(start)
    while cursor <= end:
        following = add_months(cursor, 1)
        windows.append((cursor.strftime('%b %Y'), cursor, following))
        cursor = following
    return windows


def resolve_range(range_key: str) -> int:
    """
    Number of days covered by a range key ('7d', '30d', '90d', '1y').

    Raises:
        ValidationError: Unknown range key
    """
    days = AnalyticsRange.DAYS.get(range_key)
    if days is None:
        raise ValidationError(
            f"Unknown range '{range_key}'. Use one of: {', '.join(AnalyticsRange.DAYS)}",
            {"range": range_key},
        )
    return days


class AnalyticsService:
    """Read-only aggregation over the marketplace tables."""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.companies = CompanyRepository(db)
        self.requirements = RequirementRepository(db)
        self.quotes = QuoteRepository(db)

    def platform_summary(self, now: datetime = None) -> dict:
        """
        Admin dashboard payload.

        'projects' are homeowner requirements; revenue is the sum of accepted
        quote budgets. Payments are not handled by this service and always
        report zero.
        """
        now = now or datetime.utcnow()
        thirty_days_ago = now - timedelta(days=30)

        roles = self.users.count_by_role()
        total_users = sum(roles.values())
        new_users = self.users.created_between(thirty_days_ago, now + timedelta(seconds=1))

        growth = []
        first_month = add_months(month_start(now), -(AnalyticsRange.GROWTH_MONTHS - 1))
        for label, start, end in month_windows(first_month, now):
            growth.append({"month": label, "users": self.users.created_between(start, end)})

        total_companies = self.companies.count()
        verified_companies = self.companies.count(VerifiedSpec(Company, True))

        statuses = self.requirements.count_by_status()
        quote_statuses = self.quotes.count_by_status()
        total_quotes = sum(quote_statuses.values())
        accepted = quote_statuses.get(QuoteStatus.ACCEPTED.value, 0)
        revenue = self.quotes.accepted_revenue()

        recent = [{
            "_id": requirement.id,
            "title": requirement.title,
            "status": requirement.status,
            "budget": requirement.budget,
            "createdAt": requirement.created_at.isoformat(),
            "user": {"name": requirement.homeowner.name if requirement.homeowner else None},
        } for requirement in self.requirements.recent(RECENT_ITEMS)]

        return {
            "overview": {
                "totalUsers": total_users,
                "totalCompanies": total_companies,
                "totalProjects": sum(statuses.values()),
                "totalRevenue": revenue,
                "newUsers30Days": new_users,
            },
            "users": {
                "total": total_users,
                "homeowners": roles.get(UserRole.HOMEOWNER.value, 0),
                "companyAdmins": roles.get(UserRole.COMPANY_ADMIN.value, 0),
                "professionals": roles.get(UserRole.PROFESSIONAL.value, 0),
                "admins": roles.get(UserRole.ADMIN.value, 0),
                "newUsers30Days": new_users,
                "monthlyGrowth": growth,
            },
            "companies": {
                "total": total_companies,
                "verified": verified_companies,
                "unverified": total_companies - verified_companies,
                "topCompanies": [
                    {"name": name, "acceptedProposals": count}
                    for name, count in self.quotes.top_companies_by_acceptance(TOP_COMPANIES)
                ],
            },
            "projects": {
                "total": sum(statuses.values()),
                "open": statuses.get(RequirementStatus.OPEN.value, 0),
                "inProgress": statuses.get(RequirementStatus.IN_PROGRESS.value, 0),
                "completed": statuses.get(RequirementStatus.COMPLETED.value, 0),
                "cancelled": statuses.get(RequirementStatus.CANCELLED.value, 0),
            },
            "proposals": {
                "total": total_quotes,
                "accepted": accepted,
                "pending": quote_statuses.get(QuoteStatus.SUBMITTED.value, 0),
                "rejected": quote_statuses.get(QuoteStatus.REJECTED.value, 0),
                "acceptanceRate": f"{(accepted / total_quotes * 100) if total_quotes else 0:.1f}",
            },
            "payments": {
                "total": 0,
                "completed": 0,
                "pending": 0,
                "failed": 0,
                "totalRevenue": 0,
            },
            "recentActivity": {"projects": recent},
        }

    def _provider_projects(self, user: User, since: datetime) -> List[dict]:
        """
        The provider's own projects created since a date, as plain dicts.

        Company admins are measured on their company's showcase projects
        (with inquiry counts as 'proposals'); professionals on their portfolio.
        """
        if user.role == UserRole.COMPANY_ADMIN.value:
            company = self.companies.get_by_admin(user.id)
            if company is None:
                return []
            rows = self.db.query(Project, func.count(Inquiry.id)).outerjoin(
                Inquiry, Inquiry.project_id == Project.id
            ).filter(
                Project.company_id == company.id,
                Project.created_at >= since
            ).group_by(Project.id).all()
            return [{
                "_id": project.id, "title": project.title, "views": project.views or 0,
                "proposals": inquiries, "status": project.status, "createdAt": project.created_at,
            } for project, inquiries in rows]

        rows = self.db.query(ProfessionalProject).filter(
            ProfessionalProject.owner_id == user.id,
            ProfessionalProject.created_at >= since
        ).all()
        return [{
            "_id": project.id, "title": project.title, "views": project.views or 0,
            "proposals": 0, "status": project.status, "createdAt": project.created_at,
        } for project in rows]

    def provider_summary(self, user: User, range_key: str = AnalyticsRange.DEFAULT,
                         now: datetime = None) -> dict:
        """
        Provider dashboard payload for one time range.

        Raises:
            ValidationError: Unknown range key
        """
        now = now or datetime.utcnow()
        since = now - timedelta(days=resolve_range(range_key))

        quotes = self.quotes.for_provider(user.id, since=since)
        accepted = [q for q in quotes if q.status == QuoteStatus.ACCEPTED.value]
        earnings = sum(q.estimated_budget for q in accepted)
        projects = self._provider_projects(user, since)

        monthly = []
        for label, start, end in month_windows(since, now):
            monthly.append({
                "month": label,
                "projects": sum(1 for p in projects if start <= p["createdAt"] < end),
                "proposals": sum(1 for q in quotes if start <= q.created_at < end),
                "earnings": sum(q.estimated_budget for q in accepted if start <= q.created_at < end),
            })

        activity = [{
            "type": "proposal_accepted" if q.status == QuoteStatus.ACCEPTED.value else "proposal_submitted",
            "description": f"Quote for \"{q.requirement.title if q.requirement else 'a requirement'}\" ({q.status})",
            "date": q.created_at.isoformat(),
            "amount": q.estimated_budget,
        } for q in quotes]
        activity += [{
            "type": "project_created",
            "description": f"Project \"{p['title']}\" added",
            "date": p["createdAt"].isoformat(),
        } for p in projects]
        activity.sort(key=lambda item: item["date"], reverse=True)

        top = sorted(projects, key=lambda p: p["views"], reverse=True)[:RECENT_ITEMS]

        return {
            "range": range_key,
            "totalProjects": len(projects),
            "activeProjects": sum(1 for p in projects if p["status"] in (
                ProjectStatus.IN_PROGRESS.value, ProjectStatus.PLANNING.value)),
            "completedProjects": sum(1 for p in projects if p["status"] == ProjectStatus.COMPLETED.value),
            "totalProposals": len(quotes),
            "acceptedProposals": len(accepted),
            "proposalSuccessRate": round(len(accepted) / len(quotes) * 100, 1) if quotes else 0,
            "totalEarnings": earnings,
            "averageProjectValue": round(earnings / len(accepted), 2) if accepted else 0,
            "monthlyStats": monthly,
            "topPerformingProjects": [
                {k: v for k, v in p.items() if k != "createdAt"} for p in top
            ],
            "recentActivity": activity[:RECENT_ACTIVITY],
        }
