"""
Idea models (ranking signal for candidates)
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class Idea(Base):
    """Idea posted by a member"""
    __tablename__ = "ideas"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    author = relationship("User")

class IdeaSupport(Base):
    """A member supporting an idea"""
    __tablename__ = "idea_supports"
    __table_args__ = (UniqueConstraint("idea_id", "user_id", name="uq_idea_support"),)

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    idea_id = Column(String(64), ForeignKey("ideas.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
