"""
Notification API routes
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from civicvote.api.deps import CurrentUser, get_current_user
from civicvote.core.database import get_db
from civicvote.core.exceptions import ConventionError
from civicvote.schemas.notification_schemas import NotificationResponse
from civicvote.services.notification_service import NotificationService

router = APIRouter()

@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's notifications, newest first"""
    return await NotificationService(db).list_for_user(user.id, unread_only=unread_only)

@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark one of the caller's notifications as read"""
    try:
        return await NotificationService(db).mark_read(user.id, notification_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
