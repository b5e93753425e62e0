"""
Notification API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from dependencies import get_current_user
from models import User
from schemas import NotificationList, NotificationResponse, ReadReceipt
from services.notification_service import NotificationService
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/notifications", response_model=NotificationList)
@handle_api_errors("List notifications")
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: Optional[int] = Query(None, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notifications, unread = NotificationService(db).list_for_user(user.id, unread_only=unread_only, limit=limit)
    return {"notifications": notifications, "unread_count": unread}


@router.put("/notifications/read-all", response_model=ReadReceipt)
@handle_api_errors("Mark all notifications read")
def mark_all_read(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"updated": NotificationService(db).mark_all_read(user.id)}


@router.put("/notifications/{notification_id}/read", response_model=NotificationResponse)
@handle_api_errors("Mark notification read")
def mark_read(notification_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return NotificationService(db).mark_read(notification_id, user.id)
