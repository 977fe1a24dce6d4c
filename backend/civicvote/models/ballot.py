"""
Ballot model

One row is both the choice (voter -> candidate) and the receipt
(voter -> round); the unique (voter, round) pair is what stops double voting.
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class Ballot(Base):
    """Ballot table"""
    __tablename__ = "ballots"
    __table_args__ = (
        UniqueConstraint("voter_id", "round_id", name="uq_ballot_voter_round"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    race_id = Column(String(64), ForeignKey("nomination_races.id"), nullable=False, index=True)
    round_id = Column(String(100), ForeignKey("voting_rounds.id"), nullable=False, index=True)
    voter_id = Column(String(64), ForeignKey("users.id"), nullable=False)       # voter
    candidate_id = Column(String(64), ForeignKey("users.id"), nullable=False)   # choice
    voted_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    round = relationship("VotingRound")
    voter = relationship("User", foreign_keys=[voter_id])
    candidate = relationship("User", foreign_keys=[candidate_id])
