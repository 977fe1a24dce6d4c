"""
Per-user notifications
"""

import json
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from civicvote.core.exceptions import NotFoundError
from civicvote.models.notification import Notification
from civicvote.schemas.notification_schemas import NotificationResponse

logger = logging.getLogger(__name__)

NOMINATION = "NOMINATION"
ROUND_RESULT = "ROUND_RESULT"

class NotificationService:
    """Stores and lists notifications"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_response(notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=notification.id,
            type=notification.type,
            title=notification.title,
            body=notification.body,
            payload=json.loads(notification.payload_json) if notification.payload_json else None,
            read=bool(notification.read),
            created_at=notification.created_at,
        )

    def create_notification(self, user_id: str, type: str, title: str,
                            body: Optional[str] = None,
                            payload: Optional[Dict[str, Any]] = None) -> Notification:
        """Queue a notification in the current transaction"""
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            body=body or "",
            payload_json=json.dumps(payload) if payload else None,
        )
        self.db.add(notification)
        return notification

    def notify_best_effort(self, recipients: List[str], type: str, title: str,
                           body: Optional[str] = None,
                           payload: Optional[Dict[str, Any]] = None) -> int:
        """Write notifications in their own commit; failures are logged, never raised"""
        try:
            for user_id in recipients:
                self.create_notification(user_id, type, title, body, payload)
            self.db.commit()
            return len(recipients)
        except Exception:
            self.db.rollback()
            logger.exception("Failed to create %s notification for %s", type, recipients)
            return 0

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> List[NotificationResponse]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        notifications = query.order_by(Notification.created_at.desc()).all()
        return [self.to_response(n) for n in notifications]

    async def mark_read(self, user_id: str, notification_id: str) -> NotificationResponse:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")
        notification.read = True
        self.db.commit()
        self.db.refresh(notification)
        return self.to_response(notification)
