"""
Project repository for the public showcase listings.
"""

import math
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from models import Project, Review
from .base_repository import BaseRepository
from .specifications import Specification


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project model operations."""

    def __init__(self, db: Session):
        super().__init__(db, Project)

    def sort_columns(self, sort_by: Optional[str]) -> list:
        """
        Translate a listing sort key to ORDER BY columns.

        Unknown keys sort by relevance (rating, then newest).
        """
        model = self.model
        orderings = {
            'newest': [model.created_at.desc()],
            'oldest': [model.created_at.asc()],
            'budget-low': [model.budget.is_(None), model.budget.asc()],
            'budget-high': [model.budget.is_(None), model.budget.desc()],
            'rating': [model.rating.desc(), model.review_count.desc()],
            'views': [model.views.desc()],
        }
        return orderings.get(sort_by or 'relevance', [model.rating.desc(), model.created_at.desc()])

    def search(self, spec: Specification[Project], sort_by: Optional[str],
               page: int, limit: int) -> Tuple[List[Project], int, int]:
        """
        Page through projects matching a specification.

        Returns:
            (projects on the page, total matches, total pages)
        """
        query = self.query().options(joinedload(self.model.company)).filter(spec.to_sql_filter())
        total = query.count()
        projects = query.order_by(*self.sort_columns(sort_by)).offset((page - 1) * limit).limit(limit).all()
        pages = math.ceil(total / limit) if total else 0
        return projects, total, pages

    def for_company(self, company_id: str) -> List[Project]:
        return self.query().filter(
            self.model.company_id == company_id
        ).order_by(self.model.created_at.desc()).all()

    def increment_views(self, project: Project) -> Project:
        project.views = (project.views or 0) + 1
        self.db.flush()
        return project


class ReviewRepository(BaseRepository[Review]):
    """Repository for project reviews."""

    def __init__(self, db: Session):
        super().__init__(db, Review)

    def for_project(self, project_id: str) -> List[Review]:
        return self.query().options(joinedload(self.model.user)).filter(
            self.model.project_id == project_id
        ).order_by(self.model.created_at.desc()).all()

    def get_for_user(self, project_id: str, user_id: str) -> Optional[Review]:
        return self.query().filter(
            self.model.project_id == project_id,
            self.model.user_id == user_id
        ).first()

    def project_ids_reviewed_by(self, user_id: str) -> List[str]:
        rows = self.db.query(self.model.project_id).filter(self.model.user_id == user_id).all()
        return [row[0] for row in rows]
