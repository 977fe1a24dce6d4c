"""
Candidacy model (user running in a race)
"""

import uuid
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class Candidacy(Base):
    """Candidacy table"""
    __tablename__ = "candidacies"
    __table_args__ = (
        # one race per user per convention
        UniqueConstraint("user_id", "convention_id", name="uq_candidacy_per_convention"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    race_id = Column(String(64), ForeignKey("nomination_races.id"), nullable=False, index=True)
    convention_id = Column(String(64), ForeignKey("conventions.id"), nullable=False)
    nomination_count = Column(Integer, nullable=False, default=0)   # snapshot at acceptance
    nominated_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    user = relationship("User")
    race = relationship("NominationRace")
