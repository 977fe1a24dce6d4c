"""
User model (mirror of the external user registry)
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class User(Base):
    """User table"""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=True, unique=True)
    riding_id = Column(String(64), ForeignKey("locations.id"), nullable=True)  # resident riding
    verified = Column(Boolean, default=False)
    is_admin = Column(Boolean, default=False)
    candidate = Column(Boolean, default=False)          # currently running somewhere
    strategic_points = Column(Integer, default=0)       # earned through strategic planning
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    riding = relationship("Location")
