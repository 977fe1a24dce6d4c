"""
Notification model
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Text, Boolean
from sqlalchemy.sql import func
from civicvote.core.database import Base

class Notification(Base):
    """Per-user notification"""
    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(30), nullable=False)        # NOMINATION, ROUND_RESULT
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=True)
    payload_json = Column(Text, nullable=True)       # extra data as JSON
    read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
