"""
Elimination record model
"""

import uuid
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class Elimination(Base):
    """Elimination table"""
    __tablename__ = "eliminations"
    __table_args__ = (
        UniqueConstraint("race_id", "candidate_id", name="uq_elimination_per_race"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    race_id = Column(String(64), ForeignKey("nomination_races.id"), nullable=False, index=True)
    round_id = Column(String(100), ForeignKey("voting_rounds.id"), nullable=False)   # round the candidate fell in
    candidate_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    vote_count = Column(Integer, nullable=False)       # final vote count
    eliminated_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    round = relationship("VotingRound")
    candidate = relationship("User")
