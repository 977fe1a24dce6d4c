"""
Nomination race model
"""

import uuid
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

RACE_OPEN = "open"
RACE_VOTING = "voting"
RACE_COMPLETED = "completed"

def new_race_id() -> str:
    return f"race-{uuid.uuid4().hex}"

class NominationRace(Base):
    """One race per (convention, riding)"""
    __tablename__ = "nomination_races"
    __table_args__ = (
        UniqueConstraint("convention_id", "riding_id", name="uq_race_convention_riding"),
    )

    id = Column(String(64), primary_key=True, default=new_race_id)
    convention_id = Column(String(64), ForeignKey("conventions.id"), nullable=False, index=True)
    riding_id = Column(String(64), ForeignKey("locations.id"), nullable=False)
    status = Column(String(20), nullable=False, default=RACE_OPEN)    # open, voting, completed
    current_round = Column(Integer, nullable=False, default=0)        # 0 = voting not started
    active_round_id = Column(String(100), nullable=True)              # the single active round, if any
    wave = Column(Integer, nullable=True)
    winner_id = Column(String(64), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    convention = relationship("Convention", back_populates="races")
    riding = relationship("Location")
    winner = relationship("User")
