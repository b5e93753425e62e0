"""
Project Service

Public showcase listings, company-managed projects and project reviews.
"""
from typing import List, Optional, Tuple
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from constants import Pagination
from exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from models import Company, Project, Review, User
from repositories import CompanyRepository, ProjectRepository, ReviewRepository
from repositories.listing_specifications import project_filter
from utils.budget import parse_budget_band

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('relevance', 'newest', 'oldest', 'budget-low', 'budget-high', 'rating', 'views')


def refresh_ratings(db: Session, project: Project) -> None:
    """
    Recompute a project's rating and review count from its reviews, then its
    company's rating across every review of every company project.
    """
    avg, count = db.query(func.avg(Review.rating), func.count(Review.id)).filter(
        Review.project_id == project.id
    ).one()
    project.rating = round(float(avg), 2) if avg is not None else 0.0
    project.review_count = count

    company_avg, company_count = db.query(func.avg(Review.rating), func.count(Review.id)).join(
        Project, Project.id == Review.project_id
    ).filter(Project.company_id == project.company_id).one()
    company = db.get(Company, project.company_id)
    if company is not None:
        company.rating = round(float(company_avg), 2) if company_avg is not None else 0.0
        company.review_count = company_count
    db.flush()


class ProjectService:

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository(db)
        self.companies = CompanyRepository(db)
        self.reviews = ReviewRepository(db)

    def search(self, q: Optional[str] = None, budget: Optional[str] = None,
               building_type: Optional[str] = None, location: Optional[str] = None,
               sort_by: Optional[str] = 'relevance', page: int = 1,
               limit: int = Pagination.DEFAULT_LIMIT) -> Tuple[List[Project], int, int, int]:
        """
        Search the public project listing.

        Args:
            q: Free text matched against title, description and location
            budget: Budget band label ('₹50L - ₹1Cr') or 'min-max'
            building_type: Exact building type (case-insensitive)
            location: Location substring
            sort_by: One of SORT_OPTIONS
            page: 1-based page number
            limit: Page size

        Returns:
            (projects, total, page, pages)
        """
        if sort_by and sort_by not in SORT_OPTIONS:
            raise ValidationError(f"Unknown sort option: {sort_by}", {"sortBy": sort_by})

        page = max(page, 1)
        limit = min(max(limit, 1), Pagination.MAX_LIMIT)
        min_budget, max_budget = parse_budget_band(budget)

        spec = project_filter(q, min_budget, max_budget, building_type, location)
        projects, total, pages = self.projects.search(spec, sort_by, page, limit)
        return projects, total, page, pages

    def top_professionals(self, limit: int = 8) -> List[Company]:
        return self.companies.top_rated(limit)

    def view(self, project_id: str) -> Project:
        """Get a project for its detail page, counting the view."""
        project = self.projects.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        self.projects.increment_views(project)
        self.db.commit()
        return project

    # Company-managed projects

    def _own_company(self, user: User) -> Company:
        company = self.companies.get_by_admin(user.id)
        if company is None:
            raise NotFoundError("Company", message="Create your company profile first")
        return company

    def _own_project(self, project_id: str, user: User) -> Project:
        company = self._own_company(user)
        project = self.projects.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        if project.company_id != company.id:
            raise PermissionDeniedError()
        return project

    def list_for_company_admin(self, user: User) -> List[Project]:
        return self.projects.for_company(self._own_company(user).id)

    def create(self, user: User, **fields) -> Project:
        company = self._own_company(user)
        project = Project(company_id=company.id, **fields)
        self.projects.create(project)
        self.db.commit()
        logger.info(f"🏗️  Project {project.id} published by company {company.id}")
        return project

    def update(self, project_id: str, user: User, **changes) -> Project:
        project = self._own_project(project_id, user)
        self.projects.update(project, **changes)
        self.db.commit()
        return project

    def delete(self, project_id: str, user: User) -> None:
        project = self._own_project(project_id, user)
        company_id = project.company_id
        self.projects.delete(project)
        company = self.companies.get_by_id(company_id)
        if company is not None:
            # Company rating covers the remaining projects only
            remaining = self.projects.for_company(company_id)
            if remaining:
                refresh_ratings(self.db, remaining[0])
            else:
                company.rating = 0.0
                company.review_count = 0
        self.db.commit()

    def remove_image(self, project_id: str, user: User, url: str) -> List[str]:
        project = self._own_project(project_id, user)
        images = list(project.images or [])
        if url not in images:
            raise NotFoundError("Image", message="Image not found on this project")
        images.remove(url)
        project.images = images
        self.db.commit()
        return images

    # Reviews

    def list_reviews(self, project_id: str) -> List[Review]:
        if not self.projects.exists(project_id):
            raise NotFoundError("Project", project_id)
        return self.reviews.for_project(project_id)

    def add_review(self, project_id: str, user: User, rating: int, comment: str,
                   images: Optional[List[str]] = None) -> Review:
        """
        Review a project once per user.

        Raises:
            PermissionDeniedError: The reviewer administers the project's company
            ConflictError: The user already reviewed this project
        """
        project = self.projects.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        if project.company is not None and project.company.admin_id == user.id:
            raise PermissionDeniedError("You cannot review your own project")
        if self.reviews.get_for_user(project_id, user.id) is not None:
            raise ConflictError("You have already reviewed this project", resource="review")

        review = Review(project_id=project_id, user_id=user.id, rating=rating,
                        comment=comment, images=images or [])
        try:
            self.reviews.create(review)
            refresh_ratings(self.db, project)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("You have already reviewed this project", resource="review")

        logger.info(f"⭐ Review {rating}/5 on project {project_id}")
        return review
