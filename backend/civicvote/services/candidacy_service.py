"""
Candidacy set: nominees who accepted and are running in a race
"""

import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from civicvote.core.exceptions import ConflictError, ValidationError
from civicvote.models.candidacy import Candidacy
from civicvote.models.nomination import Nomination
from civicvote.models.race import RACE_OPEN, RACE_VOTING
from civicvote.schemas.common_schemas import LocationInfo
from civicvote.schemas.nomination_schemas import CandidacyInfo, CandidacyStatus, NominationResult
from civicvote.services.location_service import LocationService
from civicvote.services.nomination_service import NominationService
from civicvote.services.race_service import RaceService

logger = logging.getLogger(__name__)

class CandidacyService:
    """Accept, withdraw and inspect candidacies"""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationService(db)
        self.races = RaceService(db)
        self.nominations = NominationService(db)

    def get_candidacy(self, user_id: str, convention_id: str):
        return self.db.query(Candidacy).filter(
            Candidacy.user_id == user_id,
            Candidacy.convention_id == convention_id
        ).first()

    async def accept(self, user_id: str, race_id: str, convention_id: str) -> NominationResult:
        """Start running in a race the member was nominated for"""
        race = self.races.get_race(race_id)
        if race.convention_id != convention_id:
            raise ValidationError("This race does not belong to the convention")
        user = self.locations.get_user(user_id)

        existing = self.get_candidacy(user_id, convention_id)
        if existing and existing.race_id != race_id:
            raise ConflictError("You are already running in another race in this convention. Withdraw first.")

        if existing is None:
            if race.status != RACE_OPEN:
                raise ConflictError("This race is no longer accepting candidates")

            nomination_count = self.nominations.count_nominations(race_id, user_id)
            if nomination_count == 0:
                raise ValidationError("You have not been nominated for this race")

            self.db.add(Candidacy(
                user_id=user_id,
                race_id=race_id,
                convention_id=convention_id,
                nomination_count=nomination_count,
            ))
            user.candidate = True
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ConflictError("You are already running in another race in this convention. Withdraw first.")
            logger.info("User %s accepted candidacy in race %s with %d nomination(s)",
                        user_id, race_id, nomination_count)
            existing = self.get_candidacy(user_id, convention_id)

        riding = race.riding
        return NominationResult(
            success=True,
            message=f"{user.name} is now running in {riding.name} with {existing.nomination_count} nomination(s).",
            race_id=race_id,
            nomination_count=existing.nomination_count,
            riding=LocationInfo.model_validate(riding),
        )

    async def withdraw(self, user_id: str, race_id: str) -> bool:
        """Stop running; nominations stay. Returns False when there was nothing to withdraw."""
        candidacy = self.db.query(Candidacy).filter(
            Candidacy.user_id == user_id,
            Candidacy.race_id == race_id
        ).first()
        if candidacy is None:
            return False
        if candidacy.race.status == RACE_VOTING:
            raise ConflictError("You cannot withdraw while voting is under way in this race")

        self.db.delete(candidacy)
        self.db.flush()
        still_running = self.db.query(func.count(Candidacy.id)).filter(
            Candidacy.user_id == user_id
        ).scalar() or 0
        if still_running == 0:
            self.locations.get_user(user_id).candidate = False
        self.db.commit()
        logger.info("User %s withdrew from race %s", user_id, race_id)
        return True

    async def get_candidacy_status(self, user_id: str, convention_id: str) -> CandidacyStatus:
        """Where (if anywhere) a member is running in this convention"""
        self.locations.get_user(user_id)
        candidacy = self.get_candidacy(user_id, convention_id)
        home = self.locations.get_resident_riding(user_id)
        total_nominations = self.db.query(func.count(Nomination.id)).filter(
            Nomination.nominee_id == user_id,
            Nomination.convention_id == convention_id
        ).scalar() or 0

        info = None
        if candidacy:
            riding = candidacy.race.riding
            province = self.locations.get_province(riding)
            info = CandidacyInfo(
                race_id=candidacy.race_id,
                riding=LocationInfo.model_validate(riding),
                province=LocationInfo.model_validate(province) if province else None,
                nomination_count=candidacy.nomination_count,
                nominated_at=candidacy.nominated_at,
            )
        return CandidacyStatus(
            is_running=candidacy is not None,
            candidacy=info,
            location=LocationInfo.model_validate(home) if home else None,
            nomination_count=total_nominations,
        )
