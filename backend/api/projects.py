"""
Showcase project API endpoints

Public browsing (/projects, /projects/search, /projects/{id}) and the
company admin's own project management (/projects/company/...).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from constants import HTTPStatus, Pagination
from database import get_db
from dependencies import require_company_admin
from models import User
from schemas import CompanyResponse, ProjectCreate, ProjectPage, ProjectResponse, ProjectUpdate
from services.project_service import ProjectService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


def _page(service: ProjectService, q, budget, building_type, location, sort_by, page, limit) -> dict:
    projects, total, page, pages = service.search(
        q=q, budget=budget, building_type=building_type, location=location,
        sort_by=sort_by, page=page, limit=limit,
    )
    return {"projects": projects, "total": total, "page": page, "pages": pages}


@router.get("/projects", response_model=ProjectPage)
@handle_api_errors("List projects")
def list_projects(
    q: Optional[str] = Query(None, description="Matches title, description or location"),
    budget: Optional[str] = Query(None, description="Budget band label or 'min-max'"),
    building_type: Optional[str] = Query(None, alias="buildingType"),
    location: Optional[str] = Query(None),
    sort_by: str = Query("relevance", alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_LIMIT),
    db: Session = Depends(get_db),
):
    return _page(ProjectService(db), q, budget, building_type, location, sort_by, page, limit)


@router.get("/projects/search", response_model=ProjectPage)
@handle_api_errors("Search projects")
def search_projects(
    q: Optional[str] = Query(None),
    budget: Optional[str] = Query(None),
    building_type: Optional[str] = Query(None, alias="buildingType"),
    location: Optional[str] = Query(None),
    sort_by: str = Query("newest", alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(Pagination.DEFAULT_LIMIT, ge=1, le=Pagination.MAX_LIMIT),
    db: Session = Depends(get_db),
):
    return _page(ProjectService(db), q, budget, building_type, location, sort_by, page, limit)


@router.get("/projects/top-professionals", response_model=List[CompanyResponse])
@handle_api_errors("Top professionals")
def top_professionals(limit: int = Query(8, ge=1, le=50), db: Session = Depends(get_db)):
    """Verified companies, best rated first."""
    return ProjectService(db).top_professionals(limit)


@router.get("/projects/my/company", response_model=List[ProjectResponse])
@handle_api_errors("List own projects")
def my_projects(user: User = Depends(require_company_admin), db: Session = Depends(get_db)):
    return ProjectService(db).list_for_company_admin(user)


@router.post("/projects/company", response_model=ProjectResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Create project")
def create_project(
    body: ProjectCreate,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    return ProjectService(db).create(user, **body.model_dump(exclude_none=True))


@router.put("/projects/company/{project_id}", response_model=ProjectResponse)
@handle_api_errors("Update project")
def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    return ProjectService(db).update(project_id, user, **body.model_dump(exclude_none=True))


@router.delete("/projects/company/{project_id}/images")
@handle_api_errors("Remove project image")
def remove_image(
    project_id: str,
    url: str = Query(..., description="URL of the image to remove"),
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    return {"images": ProjectService(db).remove_image(project_id, user, url)}


@router.delete("/projects/company/{project_id}")
@handle_api_errors("Delete project")
def delete_project(project_id: str, user: User = Depends(require_company_admin), db: Session = Depends(get_db)):
    ProjectService(db).delete(project_id, user)
    return {"message": "Project deleted successfully"}


@router.get("/projects/{project_id}", response_model=ProjectResponse)
@handle_api_errors("Get project")
def get_project(project_id: str, db: Session = Depends(get_db)):
    """Project detail; every fetch counts as a view."""
    return ProjectService(db).view(project_id)
