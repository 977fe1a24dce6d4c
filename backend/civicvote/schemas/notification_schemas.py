"""
Notification schemas
"""

from typing import Any, Dict, Optional
from civicvote.schemas.common_schemas import APIModel, Timestamp

class NotificationResponse(APIModel):
    """Notification"""
    id: str
    type: str
    title: str
    body: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    read: bool
    created_at: Optional[Timestamp] = None
