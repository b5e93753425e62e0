"""
Analytics API Endpoints

Dashboard payloads: platform-wide figures for admins, and proposal and
project performance for providers over a selectable time range.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from constants import AnalyticsRange
from database import get_db
from dependencies import require_admin, require_provider
from models import User
from services.analytics_service import AnalyticsService
from utils.error_handlers import handle_api_errors

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/analytics")
@handle_api_errors("Platform analytics")
def platform_analytics(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """
    Admin dashboard.

    Includes user growth over the last six months, top companies by accepted
    proposals and the proposal acceptance rate. Payments are reported as
    zeros.
    """
    return AnalyticsService(db).platform_summary()


@router.get("/analytics/professional")
@handle_api_errors("Provider analytics")
def provider_analytics(
    range_key: str = Query(AnalyticsRange.DEFAULT, alias="range", description="7d, 30d, 90d or 1y"),
    user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    return AnalyticsService(db).provider_summary(user, range_key)
