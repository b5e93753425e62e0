"""
Requirement API endpoints

Homeowners post requirements (multipart, with optional image attachments),
review the quotes they receive and select one. Providers browse the open
requirements.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
import json
import logging

from constants import HTTPStatus, RequirementPriority
from database import get_db
from dependencies import get_current_user, require_homeowner, require_provider, get_event_broadcaster
from exceptions import ValidationError
from models import User
from schemas import (
    OpenRequirementResponse,
    QuoteResponse,
    RequirementResponse,
    RequirementWithOwner,
    SelectQuoteRequest,
)
from services.event_broadcaster import EventBroadcaster
from services.notification_service import NotificationService
from services.requirement_service import RequirementService
from services.upload_service import UploadService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


def _json_field(raw: Optional[str], field: str, default):
    """Decode a JSON-encoded multipart field."""
    if raw is None or not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(f"{field} must be valid JSON", {field: raw})


@router.post("/requirements", response_model=RequirementResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Create requirement")
async def create_requirement(
    service_type: str = Form(..., alias="serviceType"),
    title: str = Form(...),
    description: str = Form(...),
    location: str = Form(...),
    budget: str = Form(...),
    timeline: Optional[str] = Form(None, description='JSON: {"startDate": ..., "endDate": ...}'),
    priority: str = Form(RequirementPriority.MEDIUM.value),
    request_multiple_quotes: bool = Form(True, alias="requestMultipleQuotes"),
    building_type: Optional[str] = Form(None, alias="buildingType"),
    size: Optional[int] = Form(None),
    bedrooms: Optional[int] = Form(None),
    bathrooms: Optional[int] = Form(None),
    features: Optional[str] = Form(None, description="JSON list of strings"),
    design_preferences: Optional[str] = Form(None, alias="designPreferences"),
    attachments: List[UploadFile] = File(default=[]),
    user: User = Depends(require_homeowner),
    db: Session = Depends(get_db),
):
    """Post a requirement. Attachments are stored first and removed again if the requirement is rejected."""
    timeline_data = _json_field(timeline, "timeline", {})
    if not isinstance(timeline_data, dict):
        raise ValidationError("timeline must be an object", {"timeline": timeline})
    feature_list = _json_field(features, "features", None)

    uploads = UploadService()
    urls = await uploads.save_all(attachments) if attachments else []
    try:
        return RequirementService(db).create(
            user,
            service_type=service_type,
            title=title,
            description=description,
            location=location,
            budget=budget,
            timeline=timeline_data,
            priority=priority,
            request_multiple_quotes=request_multiple_quotes,
            attachments=urls,
            building_type=building_type,
            size=size,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            features=feature_list,
            design_preferences=design_preferences,
        )
    except Exception:
        for url in urls:
            uploads.remove(url)
        raise


@router.get("/requirements/my", response_model=List[RequirementResponse])
@handle_api_errors("List own requirements")
def my_requirements(user: User = Depends(require_homeowner), db: Session = Depends(get_db)):
    return RequirementService(db).list_mine(user)


@router.get("/requirements/open", response_model=List[OpenRequirementResponse])
@handle_api_errors("List open requirements")
def open_requirements(
    service_type: Optional[str] = Query(None, alias="serviceType"),
    location: Optional[str] = Query(None),
    min_budget: Optional[int] = Query(None, alias="minBudget", ge=0),
    max_budget: Optional[int] = Query(None, alias="maxBudget", ge=0),
    priority: Optional[str] = Query(None),
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    """Open requirements for providers, newest first. Homeowners appear as name and location only."""
    return RequirementService(db).list_open(
        service_type=service_type,
        location=location,
        min_budget=min_budget,
        max_budget=max_budget,
        priority=priority,
    )


@router.get("/requirements/{requirement_id}", response_model=RequirementWithOwner)
@handle_api_errors("Get requirement")
def get_requirement(requirement_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return RequirementService(db).get_for_owner(requirement_id, user)


@router.get("/requirements/{requirement_id}/public", response_model=OpenRequirementResponse)
@handle_api_errors("Get open requirement")
def get_public_requirement(
    requirement_id: str,
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    return RequirementService(db).get_public(requirement_id)


@router.get("/requirements/{requirement_id}/quotes", response_model=List[QuoteResponse])
@handle_api_errors("List requirement quotes")
def requirement_quotes(requirement_id: str, user: User = Depends(require_homeowner), db: Session = Depends(get_db)):
    """Quotes received on the caller's requirement, cheapest first."""
    return RequirementService(db).quotes_for(requirement_id, user)


@router.put("/requirements/{requirement_id}/select-quote", response_model=RequirementResponse)
@handle_api_errors("Select quote")
async def select_quote(
    requirement_id: str,
    body: SelectQuoteRequest,
    user: User = Depends(require_homeowner),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    requirement = RequirementService(db, NotificationService(db, events)).select_quote(
        requirement_id, body.quote_id, user
    )
    await events.flush()
    return requirement


@router.put("/requirements/{requirement_id}/cancel", response_model=RequirementResponse)
@handle_api_errors("Cancel requirement")
async def cancel_requirement(
    requirement_id: str,
    user: User = Depends(require_homeowner),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    requirement = RequirementService(db, NotificationService(db, events)).cancel(requirement_id, user)
    await events.flush()
    return requirement
