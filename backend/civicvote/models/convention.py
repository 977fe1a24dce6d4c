"""
Convention model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from civicvote.core.database import Base
from civicvote.core.phases import ConventionPhase

class Convention(Base):
    """Convention table"""
    __tablename__ = "conventions"

    id = Column(String(64), primary_key=True, index=True)    # e.g. conv-2026
    name = Column(String(200), nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False, default="upcoming")  # phase tag: upcoming, waveN-nominations, waveN-voting, completed
    current_wave = Column(Integer, nullable=False, default=0)        # 0 before wave 1 opens
    country_id = Column(String(64), ForeignKey("locations.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # relationships
    country = relationship("Location")
    races = relationship("NominationRace", back_populates="convention")

    @property
    def phase(self) -> ConventionPhase:
        return ConventionPhase.parse(self.status)

    @phase.setter
    def phase(self, value: ConventionPhase):
        self.status = value.tag
        if value.wave is not None:
            self.current_wave = value.wave
