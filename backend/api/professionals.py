"""
Professional profile API endpoints

Profile changes are pushed to every connected socket as
professionalCreated / professionalUpdated / professionalVerified.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from dependencies import require_admin, require_professional, get_event_broadcaster
from models import User
from schemas import ProfessionalProfileUpdate, ProfessionalResponse, VerifyRequest
from services.event_broadcaster import EventBroadcaster
from services.professional_service import ProfessionalService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/professionals", response_model=List[ProfessionalResponse])
@handle_api_errors("List professionals")
def list_professionals(
    search: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    service: Optional[str] = Query(None, description="Offered service or specialty"),
    db: Session = Depends(get_db),
):
    return ProfessionalService(db).list(search=search, verified=verified, service=service)


@router.get("/professionals/my/profile", response_model=ProfessionalResponse)
@handle_api_errors("Get own professional profile")
def get_my_profile(user: User = Depends(require_professional), db: Session = Depends(get_db)):
    return ProfessionalService(db).get_mine(user)


@router.put("/professionals/my/profile", response_model=ProfessionalResponse)
@handle_api_errors("Save professional profile")
async def save_my_profile(
    body: ProfessionalProfileUpdate,
    user: User = Depends(require_professional),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    """Create the caller's profile on first save, update it afterwards."""
    fields = body.model_dump(exclude_none=True, exclude={'location'})
    if body.location is not None:
        fields['location'] = body.location.model_dump(by_alias=True, exclude_none=True)

    professional = ProfessionalService(db, events).upsert_mine(user, **fields)
    await events.flush()
    return professional


@router.get("/professionals/{professional_id}", response_model=ProfessionalResponse)
@handle_api_errors("Get professional")
def get_professional(professional_id: str, db: Session = Depends(get_db)):
    return ProfessionalService(db).get(professional_id)


@router.put("/professionals/{professional_id}/verify", response_model=ProfessionalResponse)
@handle_api_errors("Verify professional")
async def verify_professional(
    professional_id: str,
    body: Optional[VerifyRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    professional = ProfessionalService(db, events).set_verified(
        professional_id, body.is_verified if body else True
    )
    await events.flush()
    return professional
