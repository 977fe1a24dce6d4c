"""
Voting round model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

ROUND_ACTIVE = "active"
ROUND_COMPLETED = "completed"

class VotingRound(Base):
    """Voting round table"""
    __tablename__ = "voting_rounds"
    __table_args__ = (
        UniqueConstraint("race_id", "round_number", name="uq_round_number_per_race"),
    )

    id = Column(String(100), primary_key=True, index=True)       # <race id>-round-<n>
    race_id = Column(String(64), ForeignKey("nomination_races.id"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=ROUND_ACTIVE)   # active, completed
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    closed_at = Column(DateTime(timezone=True), nullable=True)

    # relationships
    race = relationship("NominationRace")

    @staticmethod
    def make_id(race_id: str, round_number: int) -> str:
        return f"{race_id}-round-{round_number}"
