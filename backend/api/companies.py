"""
Company API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from constants import HTTPStatus
from database import get_db
from dependencies import get_current_user, require_company_admin
from models import User
from schemas import CompanyCreate, CompanyDetail, CompanyResponse, CompanyUpdate
from services.company_service import CompanyService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/companies", response_model=CompanyResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Create company")
def create_company(
    body: CompanyCreate,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    """Create the caller's company. A company admin owns at most one."""
    return CompanyService(db).create(user, **body.model_dump(exclude_none=True))


@router.get("/companies/my/company", response_model=CompanyDetail)
@handle_api_errors("Get own company")
def get_my_company(user: User = Depends(require_company_admin), db: Session = Depends(get_db)):
    return CompanyService(db).get_mine(user)


@router.put("/companies/my/company", response_model=CompanyResponse)
@handle_api_errors("Update own company")
def update_my_company(
    body: CompanyUpdate,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    return CompanyService(db).update_mine(user, **body.model_dump(exclude_none=True))


@router.delete("/companies/my/company")
@handle_api_errors("Delete own company")
def delete_my_company(user: User = Depends(require_company_admin), db: Session = Depends(get_db)):
    CompanyService(db).delete_mine(user)
    return {"message": "Company deleted successfully"}


@router.get("/companies", response_model=List[CompanyResponse])
@handle_api_errors("List companies")
def list_companies(
    search: Optional[str] = Query(None, description="Matches name, description or services"),
    verified: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    return CompanyService(db).list(search=search, verified=verified)


@router.get("/companies/{company_id}", response_model=CompanyDetail)
@handle_api_errors("Get company")
def get_company(company_id: str, db: Session = Depends(get_db)):
    """Public company page with its showcase projects."""
    return CompanyService(db).get_detail(company_id)


@router.delete("/companies/{company_id}")
@handle_api_errors("Delete company")
def delete_company(company_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    CompanyService(db).delete(company_id, user)
    return {"message": "Company deleted successfully"}
