"""
Inquiry API endpoints

Users send inquiries to companies; the company admin works through them.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from constants import HTTPStatus
from database import get_db
from dependencies import get_current_user, require_company_admin, get_event_broadcaster
from models import User
from schemas import InquiryCreate, InquiryResponse, InquiryStatusUpdate
from services.event_broadcaster import EventBroadcaster
from services.inquiry_service import InquiryService
from services.notification_service import NotificationService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.post("/inquiries", response_model=InquiryResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Send inquiry")
async def send_inquiry(
    body: InquiryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    inquiry = InquiryService(db, NotificationService(db, events)).create(
        user,
        company_id=body.company,
        message=body.message,
        project_id=body.project,
        name=body.name,
        email=body.email,
        phone=body.phone,
        preferred_contact=body.preferred_contact,
    )
    await events.flush()
    return inquiry


@router.get("/inquiries/my", response_model=List[InquiryResponse])
@handle_api_errors("List own inquiries")
def my_inquiries(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return InquiryService(db).list_mine(user)


@router.get("/inquiries/company", response_model=List[InquiryResponse])
@handle_api_errors("List company inquiries")
def company_inquiries(
    status: Optional[str] = Query(None),
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
):
    return InquiryService(db).list_for_company_admin(user, status)


@router.put("/inquiries/{inquiry_id}/status", response_model=InquiryResponse)
@handle_api_errors("Update inquiry status")
async def update_inquiry_status(
    inquiry_id: str,
    body: InquiryStatusUpdate,
    user: User = Depends(require_company_admin),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    inquiry = InquiryService(db, NotificationService(db, events)).update_status(
        inquiry_id, user, body.status, body.notes
    )
    await events.flush()
    return inquiry
