"""
Location hierarchy model (riding -> province -> country)
"""

from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship
from civicvote.core.database import Base

# Location kinds a member can run or be nominated in
RIDING_KINDS = ("federal_riding", "provincial_riding", "town", "first_nation")

class Location(Base):
    """Location table"""
    __tablename__ = "locations"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    kind = Column(String(30), nullable=False, index=True)     # country, province, federal_riding, provincial_riding, town, first_nation
    code = Column(String(10), nullable=True, index=True)      # province code, e.g. BC
    parent_id = Column(String(64), ForeignKey("locations.id"), nullable=True)

    # relationships
    parent = relationship("Location", remote_side=[id], backref="children")

    @property
    def is_riding(self) -> bool:
        return self.kind in RIDING_KINDS
