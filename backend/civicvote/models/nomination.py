"""
Nomination model (nominator -> nominee, scoped to a race)
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

class Nomination(Base):
    """Nomination table"""
    __tablename__ = "nominations"
    __table_args__ = (
        UniqueConstraint("race_id", "nominator_id", "nominee_id", name="uq_nomination_per_nominator"),
    )

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    race_id = Column(String(64), ForeignKey("nomination_races.id"), nullable=False, index=True)
    convention_id = Column(String(64), ForeignKey("conventions.id"), nullable=False)
    riding_id = Column(String(64), ForeignKey("locations.id"), nullable=False)   # always the nominee's own riding
    nominator_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    nominee_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    race = relationship("NominationRace")
    nominator = relationship("User", foreign_keys=[nominator_id])
    nominee = relationship("User", foreign_keys=[nominee_id])
