"""
Race registry: one nomination race per (convention, riding)
"""

import logging
from typing import List, Optional
from sqlalchemy import func, distinct
from sqlalchemy.orm import Session
from civicvote.core.database import insert_ignore
from civicvote.core.exceptions import NotFoundError
from civicvote.core.phases import wave_for_province
from civicvote.models.candidacy import Candidacy
from civicvote.models.convention import Convention
from civicvote.models.endorsement import Endorsement
from civicvote.models.idea import Idea, IdeaSupport
from civicvote.models.race import NominationRace, RACE_OPEN, new_race_id
from civicvote.models.user import User
from civicvote.schemas.common_schemas import LocationInfo, UserSummary
from civicvote.schemas.convention_schemas import (
    CandidateDetail, ConventionResponse, RaceDetail, RaceSummary
)
from civicvote.services.location_service import LocationService

logger = logging.getLogger(__name__)

class RaceService:
    """Race lookup and idempotent creation"""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationService(db)

    def get_race(self, race_id: str) -> NominationRace:
        race = self.db.query(NominationRace).filter(NominationRace.id == race_id).first()
        if not race:
            raise NotFoundError("Race not found")
        return race

    def find_race(self, convention_id: str, riding_id: str) -> Optional[NominationRace]:
        return self.db.query(NominationRace).filter(
            NominationRace.convention_id == convention_id,
            NominationRace.riding_id == riding_id
        ).first()

    def ensure_race(self, convention_id: str, riding_id: str, wave: Optional[int] = None) -> bool:
        """Insert the race unless it exists; True when a new row was written.

        Does not commit, so it can share a transaction with the caller's write.
        """
        if wave is None:
            wave = wave_for_province(
                getattr(self.locations.get_province(self.locations.get_location(riding_id)), "code", None)
            )
        created = insert_ignore(
            self.db,
            NominationRace,
            {
                "id": new_race_id(),
                "convention_id": convention_id,
                "riding_id": riding_id,
                "status": RACE_OPEN,
                "current_round": 0,
                "wave": wave,
            },
            index_elements=["convention_id", "riding_id"],
        )
        if created:
            logger.info("Created race for convention %s riding %s (wave %s)", convention_id, riding_id, wave)
        return bool(created)

    async def get_or_create_race(self, convention_id: str, riding_id: str, commit: bool = True) -> NominationRace:
        """Look up the race for (convention, riding), creating it when absent"""
        race = self.find_race(convention_id, riding_id)
        if race:
            return race
        if not self.db.query(Convention.id).filter(Convention.id == convention_id).first():
            raise NotFoundError("Convention not found")
        if not self.locations.get_location(riding_id):
            raise NotFoundError("Riding not found")
        self.ensure_race(convention_id, riding_id)
        if commit:
            self.db.commit()
        return self.find_race(convention_id, riding_id)

    def summarize(self, race: NominationRace) -> RaceSummary:
        """Race with riding, province name and candidate list"""
        candidates = self.db.query(User).join(
            Candidacy, Candidacy.user_id == User.id
        ).filter(Candidacy.race_id == race.id).order_by(User.name).all()
        province = self.locations.get_province(race.riding)
        return RaceSummary(
            id=race.id,
            convention_id=race.convention_id,
            status=race.status,
            current_round=race.current_round,
            wave=race.wave,
            winner_id=race.winner_id,
            riding=LocationInfo.model_validate(race.riding) if race.riding else None,
            province_name=province.name if province else None,
            candidate_count=len(candidates),
            candidates=[UserSummary.model_validate(c) for c in candidates],
        )

    async def get_races_for_convention(self, convention_id: str) -> List[RaceSummary]:
        """Races of the convention's current wave"""
        convention = self.db.query(Convention).filter(Convention.id == convention_id).first()
        if not convention:
            raise NotFoundError("Convention not found")
        races = self.db.query(NominationRace).filter(
            NominationRace.convention_id == convention_id,
            NominationRace.wave == convention.current_wave
        ).all()
        summaries = [self.summarize(race) for race in races]
        summaries.sort(key=lambda r: (r.province_name or "", r.riding.name if r.riding else ""))
        return summaries

    def _candidate_details(self, race_id: str) -> List[CandidateDetail]:
        rows = self.db.query(User, Candidacy).join(
            Candidacy, Candidacy.user_id == User.id
        ).filter(Candidacy.race_id == race_id).all()

        details = []
        for user, candidacy in rows:
            endorsements = self.db.query(func.count(distinct(Endorsement.endorser_id))).filter(
                Endorsement.endorsee_id == user.id
            ).scalar() or 0
            # supporters of the candidate's own ideas, plus strategic planning points
            idea_points = self.db.query(func.count(distinct(IdeaSupport.user_id))).join(
                Idea, Idea.id == IdeaSupport.idea_id
            ).filter(Idea.author_id == user.id).scalar() or 0
            details.append(CandidateDetail(
                id=user.id,
                name=user.name,
                nominated_at=candidacy.nominated_at,
                nomination_count=candidacy.nomination_count,
                endorsement_count=endorsements,
                points=idea_points + (user.strategic_points or 0),
            ))
        details.sort(key=lambda c: (-c.points, -c.endorsement_count))
        return details

    async def get_race_by_id(self, race_id: str) -> RaceDetail:
        """Race with riding, province, convention and ranked candidates"""
        race = self.get_race(race_id)
        province = self.locations.get_province(race.riding)
        convention = race.convention
        return RaceDetail(
            id=race.id,
            convention_id=race.convention_id,
            status=race.status,
            current_round=race.current_round,
            active_round_id=race.active_round_id,
            wave=race.wave,
            winner_id=race.winner_id,
            created_at=race.created_at,
            riding=LocationInfo.model_validate(race.riding),
            province=LocationInfo.model_validate(province) if province else None,
            convention=ConventionResponse.model_validate(convention) if convention else None,
            candidates=self._candidate_details(race.id),
        )
