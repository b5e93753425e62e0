"""
Professional portfolio API endpoints

A professional's affiliated companies (/professional-companies) and the
projects they show in their portfolio (/professional-projects). Every
record is readable and writable by its owner only.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from constants import HTTPStatus
from database import get_db
from dependencies import require_professional
from models import User
from schemas import (
    ProfessionalCompanyCreate,
    ProfessionalCompanyUpdate,
    ProfessionalCompanyResponse,
    ProfessionalProjectCreate,
    ProfessionalProjectUpdate,
    ProfessionalProjectResponse,
)
from services.professional_service import PortfolioService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/professional-companies", response_model=List[ProfessionalCompanyResponse])
@handle_api_errors("List portfolio companies")
def list_companies(user: User = Depends(require_professional), db: Session = Depends(get_db)):
    return PortfolioService(db).list_companies(user)


@router.post("/professional-companies", response_model=ProfessionalCompanyResponse,
             status_code=HTTPStatus.CREATED)
@handle_api_errors("Create portfolio company")
def create_company(
    body: ProfessionalCompanyCreate,
    user: User = Depends(require_professional),
    db: Session = Depends(get_db),
):
    return PortfolioService(db).create_company(user, **body.model_dump(exclude_none=True))


@router.put("/professional-companies/{company_id}", response_model=ProfessionalCompanyResponse)
@handle_api_errors("Update portfolio company")
def update_company(
    company_id: str,
    body: ProfessionalCompanyUpdate,
    user: User = Depends(require_professional),
    db: Session = Depends(get_db),
):
    return PortfolioService(db).update_company(company_id, user, **body.model_dump(exclude_none=True))


@router.delete("/professional-companies/{company_id}")
@handle_api_errors("Delete portfolio company")
def delete_company(company_id: str, user: User = Depends(require_professional), db: Session = Depends(get_db)):
    PortfolioService(db).delete_company(company_id, user)
    return {"message": "Company deleted successfully"}


@router.get("/professional-projects", response_model=List[ProfessionalProjectResponse])
@handle_api_errors("List portfolio projects")
def list_projects(user: User = Depends(require_professional), db: Session = Depends(get_db)):
    """The caller's portfolio projects, featured first."""
    return PortfolioService(db).list_projects(user)


@router.post("/professional-projects", response_model=ProfessionalProjectResponse,
             status_code=HTTPStatus.CREATED)
@handle_api_errors("Create portfolio project")
def create_project(
    body: ProfessionalProjectCreate,
    user: User = Depends(require_professional),
    db: Session = Depends(get_db),
):
    return PortfolioService(db).create_project(user, **body.model_dump(exclude_none=True))


@router.put("/professional-projects/{project_id}/feature", response_model=ProfessionalProjectResponse)
@handle_api_errors("Toggle featured project")
def toggle_featured(project_id: str, user: User = Depends(require_professional), db: Session = Depends(get_db)):
    return PortfolioService(db).toggle_featured(project_id, user)


@router.put("/professional-projects/{project_id}", response_model=ProfessionalProjectResponse)
@handle_api_errors("Update portfolio project")
def update_project(
    project_id: str,
    body: ProfessionalProjectUpdate,
    user: User = Depends(require_professional),
    db: Session = Depends(get_db),
):
    return PortfolioService(db).update_project(project_id, user, **body.model_dump(exclude_none=True))


@router.delete("/professional-projects/{project_id}")
@handle_api_errors("Delete portfolio project")
def delete_project(project_id: str, user: User = Depends(require_professional), db: Session = Depends(get_db)):
    PortfolioService(db).delete_project(project_id, user)
    return {"message": "Project deleted successfully"}
