"""
Location hierarchy lookups (riding -> province -> country)
"""

from typing import Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session, aliased
from civicvote.core.exceptions import NotFoundError
from civicvote.models.location import Location
from civicvote.models.user import User

class LocationService:
    """Read-only access to users' home locations and the province/riding tree"""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_location(self, location_id: str) -> Optional[Location]:
        return self.db.query(Location).filter(Location.id == location_id).first()

    def get_resident_riding(self, user_id: str) -> Optional[Location]:
        """The riding a user lives in, or None when they never set a home location"""
        user = self.get_user(user_id)
        if not user.riding_id:
            return None
        riding = self.get_location(user.riding_id)
        if riding is None or not riding.is_riding:
            return None
        return riding

    def _ancestor(self, location: Optional[Location], kind: str) -> Optional[Location]:
        node = location
        while node is not None:
            if node.kind == kind:
                return node
            node = node.parent
        return None

    def get_province(self, location: Optional[Location]) -> Optional[Location]:
        return self._ancestor(location, "province")

    def federal_ridings_for_provinces(self, codes: List[str]) -> List[Tuple[Location, Location]]:
        """(province, riding) pairs for every federal riding under the given province codes"""
        province = aliased(Location)
        rows = self.db.query(province, Location).join(
            Location, Location.parent_id == province.id
        ).filter(
            province.kind == "province",
            province.code.in_(codes),
            Location.kind == "federal_riding"
        ).order_by(province.name, Location.name).all()
        return [(p, r) for p, r in rows]

    def riding_counts_by_province(self, codes: List[str]) -> Dict[str, int]:
        """Federal riding count per matching province code"""
        province = aliased(Location)
        rows = self.db.query(province.code, func.count(Location.id)).join(
            Location, Location.parent_id == province.id
        ).filter(
            province.kind == "province",
            province.code.in_(codes),
            Location.kind == "federal_riding"
        ).group_by(province.code).all()
        return {code: count for code, count in rows}
