"""
Endorsement model
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from civicvote.core.database import Base

class Endorsement(Base):
    """One member endorsing another"""
    __tablename__ = "endorsements"
    __table_args__ = (UniqueConstraint("endorser_id", "endorsee_id", name="uq_endorsement"),)

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    endorser_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    endorsee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
