"""
Quote API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from constants import HTTPStatus
from database import get_db
from dependencies import require_provider, get_event_broadcaster
from models import User
from schemas import QuoteCreate, QuoteResponse
from services.event_broadcaster import EventBroadcaster
from services.notification_service import NotificationService
from services.quote_service import QuoteService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.post("/quotes", response_model=QuoteResponse, status_code=HTTPStatus.CREATED)
@handle_api_errors("Submit quote")
async def submit_quote(
    body: QuoteCreate,
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
    events: EventBroadcaster = Depends(get_event_broadcaster),
):
    """Quote on an open requirement. The homeowner is notified."""
    timeline = {
        'startDate': body.timeline.start_date,
        'endDate': body.timeline.end_date,
        'milestones': [m.model_dump(by_alias=True, exclude_none=True) for m in body.timeline.milestones],
    }
    quote = QuoteService(db, NotificationService(db, events)).submit(
        user,
        requirement_id=body.requirement,
        design_proposal=body.design_proposal,
        estimated_budget=body.estimated_budget,
        budget_breakdown=body.budget_breakdown.model_dump(),
        timeline=timeline,
        additional_notes=body.additional_notes,
        terms=body.terms.model_dump(by_alias=True, exclude_none=True),
    )
    await events.flush()
    return quote


@router.get("/quotes/my", response_model=List[QuoteResponse])
@handle_api_errors("List own quotes")
def my_quotes(user: User = Depends(require_provider), db: Session = Depends(get_db)):
    return QuoteService(db).list_mine(user)


@router.put("/quotes/{quote_id}/withdraw", response_model=QuoteResponse)
@handle_api_errors("Withdraw quote")
def withdraw_quote(quote_id: str, user: User = Depends(require_provider), db: Session = Depends(get_db)):
    return QuoteService(db).withdraw(quote_id, user)
