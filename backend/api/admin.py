"""
Admin moderation API endpoints

Every route here requires the admin role.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from dependencies import require_admin, get_event_broadcaster
from models import User
from schemas import (
    UserResponse,
    ProfessionalResponse,
    RequirementWithOwner,
    CompanyResponse,
    VerifyRequest,
)
from services.admin_service import AdminService
from services.company_service import CompanyService
from services.event_broadcaster import EventBroadcaster
from services.notification_service import NotificationService
from services.professional_service import ProfessionalService
from services.requirement_service import RequirementService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/admin/overview")
@handle_api_errors("Admin overview")
def overview(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Platform row counts for the admin dashboard."""
    return {"stats": AdminService(db).overview()}


@router.get("/admin/users", response_model=List[UserResponse])
@handle_api_errors("List users")
def list_users(
    search: Optional[str] = Query(None, description="Name or email contains (case-insensitive)"),
    role: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return AdminService(db).list_users(search=search, role=role, verified=verified)


@router.put("/admin/users/{user_id}/verify", response_model=UserResponse)
@handle_api_errors("Verify user")
async def verify_user(
    user_id: str,
    body: Optional[VerifyRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    """Set verification when isVerified is given, otherwise toggle it."""
    user = AdminService(db, events).set_user_verified(user_id, body.is_verified if body else None)
    await events.flush()
    return user


@router.delete("/admin/users/{user_id}")
@handle_api_errors("Delete user")
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    AdminService(db, events).delete_user(user_id=user_id, acting_admin=admin)
    await events.flush()
    return {"message": "User deleted successfully"}


@router.get("/admin/professionals", response_model=List[ProfessionalResponse])
@handle_api_errors("List professionals")
def list_professionals(
    search: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return ProfessionalService(db).list(search=search, verified=verified)


@router.delete("/admin/professionals/{professional_id}")
@handle_api_errors("Delete professional")
async def delete_professional(
    professional_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    ProfessionalService(db, events).delete(professional_id)
    await events.flush()
    return {"message": "Professional deleted successfully"}


@router.get("/admin/projects", response_model=List[RequirementWithOwner])
@handle_api_errors("List requirements")
def list_requirements(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Every homeowner requirement with its owner, newest first."""
    return RequirementService(db).list_all(status=status, search=search)


@router.get("/companies/admin/all", response_model=List[CompanyResponse])
@handle_api_errors("List companies")
def list_companies(
    search: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CompanyService(db).list(search=search, verified=verified)


@router.put("/companies/admin/verify/{company_id}", response_model=CompanyResponse)
@handle_api_errors("Verify company")
async def verify_company(
    company_id: str,
    body: Optional[VerifyRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    company = CompanyService(db, NotificationService(db, events)).set_verified(
        company_id, body.is_verified if body else None
    )
    await events.flush()
    return company
