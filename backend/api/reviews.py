"""
Project review API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from constants import HTTPStatus
from database import get_db
from dependencies import get_current_user
from models import User
from schemas import ReviewCreate, ReviewResponse
from services.project_service import ProjectService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/reviews/project/{project_id}", response_model=List[ReviewResponse])
@handle_api_errors("List reviews")
def list_reviews(project_id: str, db: Session = Depends(get_db)):
    return ProjectService(db).list_reviews(project_id)


@router.post("/reviews/project/{project_id}", response_model=ReviewResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Add review")
def add_review(
    project_id: str,
    body: ReviewCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Review a project. Each user reviews a project once; the owning company cannot."""
    return ProjectService(db).add_review(
        project_id, user, rating=body.rating, comment=body.comment, images=body.images
    )
