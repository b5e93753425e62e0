"""
Marketplace Specifications

Concrete specifications for the moderation and public listing filters.
"""

from typing import Optional

from sqlalchemy import func

from models import User, Company, Professional, Project, Requirement
from .specifications import (
    Specification,
    FieldEqualsSpec,
    TextSearchSpec,
    RangeSpec,
    all_of,
)


class UserSearchSpec(TextSearchSpec[User]):
    """Users whose name or email contains the term."""

    def __init__(self, term: str):
        super().__init__(User, ("name", "email"), term)


class UserRoleSpec(FieldEqualsSpec[User]):

    def __init__(self, role: str):
        super().__init__(User, "role", role)


class VerifiedSpec(FieldEqualsSpec):
    """Rows with the given verification flag (users, companies, professionals)."""

    def __init__(self, model, verified: bool):
        super().__init__(model, "is_verified", verified)


class CompanySearchSpec(TextSearchSpec[Company]):

    def __init__(self, term: str):
        super().__init__(Company, ("name", "description", "address"), term)


class ProfessionalSearchSpec(TextSearchSpec[Professional]):

    def __init__(self, term: str):
        super().__init__(Professional, ("name", "description", "address"), term)


class ProjectQuerySpec(TextSearchSpec[Project]):
    """Free-text project search over title, description and location."""

    def __init__(self, term: str):
        super().__init__(Project, ("title", "description", "location"), term)


class ProjectBudgetSpec(RangeSpec[Project]):

    def __init__(self, minimum: Optional[int], maximum: Optional[int]):
        super().__init__(Project, "budget", minimum, maximum)


class ProjectBuildingTypeSpec(Specification[Project]):
    """Building type match, case-insensitive."""

    def __init__(self, building_type: str):
        self.building_type = building_type.strip().lower()

    def is_satisfied_by(self, project: Project) -> bool:
        return (project.building_type or '').lower() == self.building_type

    def to_sql_filter(self):
        return func.lower(Project.building_type) == self.building_type


class ProjectLocationSpec(TextSearchSpec[Project]):

    def __init__(self, location: str):
        super().__init__(Project, ("location",), location)


class RequirementStatusSpec(FieldEqualsSpec[Requirement]):

    def __init__(self, status: str):
        super().__init__(Requirement, "status", status)


class RequirementSearchSpec(TextSearchSpec[Requirement]):

    def __init__(self, term: str):
        super().__init__(Requirement, ("title", "description", "location"), term)


class RequirementServiceTypeSpec(FieldEqualsSpec[Requirement]):

    def __init__(self, service_type: str):
        super().__init__(Requirement, "service_type", service_type)


class RequirementLocationSpec(TextSearchSpec[Requirement]):

    def __init__(self, location: str):
        super().__init__(Requirement, ("location",), location)


class RequirementBudgetSpec(RangeSpec[Requirement]):

    def __init__(self, minimum: Optional[int], maximum: Optional[int]):
        super().__init__(Requirement, "budget", minimum, maximum)


class RequirementPrioritySpec(FieldEqualsSpec[Requirement]):

    def __init__(self, priority: str):
        super().__init__(Requirement, "priority", priority)


def user_filter(search: Optional[str] = None, role: Optional[str] = None,
                verified: Optional[bool] = None) -> Specification[User]:
    """Build the admin user-list filter from optional query parameters"""
    return all_of([
        UserSearchSpec(search) if search and search.strip() else None,
        UserRoleSpec(role) if role else None,
        VerifiedSpec(User, verified) if verified is not None else None,
    ])


def project_filter(query: Optional[str] = None, min_budget: Optional[int] = None,
                   max_budget: Optional[int] = None, building_type: Optional[str] = None,
                   location: Optional[str] = None) -> Specification[Project]:
    """Build the public project listing filter"""
    return all_of([
        ProjectQuerySpec(query) if query and query.strip() else None,
        ProjectBudgetSpec(min_budget, max_budget) if min_budget is not None or max_budget is not None else None,
        ProjectBuildingTypeSpec(building_type) if building_type and building_type.strip() else None,
        ProjectLocationSpec(location) if location and location.strip() else None,
    ])


def open_requirement_filter(service_type: Optional[str] = None, location: Optional[str] = None,
                            min_budget: Optional[int] = None, max_budget: Optional[int] = None,
                            priority: Optional[str] = None) -> Specification[Requirement]:
    """Build the filter providers use to browse open requirements"""
    return all_of([
        RequirementStatusSpec('open'),
        RequirementServiceTypeSpec(service_type) if service_type else None,
        RequirementLocationSpec(location) if location and location.strip() else None,
        RequirementBudgetSpec(min_budget, max_budget) if min_budget is not None or max_budget is not None else None,
        RequirementPrioritySpec(priority) if priority else None,
    ])
