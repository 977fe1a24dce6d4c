"""
Nomination ledger

Members nominate other members for the riding the nominee lives in.
Each (race, nominator, nominee) triple exists at most once; a nominee's
count in a race is the number of distinct nominators.
"""

import logging
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from civicvote.core.exceptions import ConflictError, NotFoundError, ValidationError
from civicvote.core.phases import wave_for_province
from civicvote.models.candidacy import Candidacy
from civicvote.models.convention import Convention
from civicvote.models.nomination import Nomination
from civicvote.models.race import NominationRace
from civicvote.models.user import User
from civicvote.schemas.common_schemas import LocationInfo
from civicvote.schemas.nomination_schemas import (
    NominationGiven, NominationGroup, NominationHistory, NominationInfo, NominationResult
)
from civicvote.services.location_service import LocationService
from civicvote.services.notification_service import NotificationService, NOMINATION
from civicvote.services.race_service import RaceService

logger = logging.getLogger(__name__)

WRONG_RIDING = "Members can only be nominated for the riding where they live"

class NominationService:
    """Nomination ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationService(db)
        self.races = RaceService(db)
        self.notifications = NotificationService(db)

    def count_nominations(self, race_id: str, nominee_id: str) -> int:
        return self.db.query(func.count(Nomination.id)).filter(
            Nomination.race_id == race_id,
            Nomination.nominee_id == nominee_id
        ).scalar() or 0

    async def nominate(self, nominator_id: str, nominee_id: str, convention_id: str,
                       riding_id: Optional[str] = None,
                       riding_type: Optional[str] = None,
                       race_id: Optional[str] = None,
                       message: Optional[str] = None) -> NominationResult:
        """Record a nomination and return the nominee's count in that race"""
        if nominator_id == nominee_id:
            raise ValidationError("You cannot nominate yourself!")

        convention = self.db.query(Convention).filter(Convention.id == convention_id).first()
        if not convention:
            raise NotFoundError("Convention not found")
        if not convention.phase.accepts_nominations():
            raise ValidationError(
                f"Convention is not accepting nominations (current phase: {convention.status})"
            )

        self.locations.get_user(nominator_id)
        nominee = self.locations.get_user(nominee_id)

        riding = self.locations.get_resident_riding(nominee_id)
        if riding is None:
            raise ValidationError(
                f"{nominee.name} has not set a home riding. They must set their location in their profile first."
            )
        if riding_id and riding_id != riding.id:
            raise ValidationError(WRONG_RIDING)
        if riding_type and riding_type != riding.kind:
            raise ValidationError(WRONG_RIDING)
        if race_id:
            explicit = self.races.get_race(race_id)
            if explicit.convention_id != convention.id or explicit.riding_id != riding.id:
                raise ValidationError(WRONG_RIDING)

        province = self.locations.get_province(riding)
        wave = wave_for_province(province.code if province else None)
        if wave is not None and not convention.phase.accepts_nominations(wave):
            raise ValidationError(f"Nominations for {riding.name} open in wave {wave}")

        self.races.ensure_race(convention.id, riding.id, wave=wave)
        race = self.races.find_race(convention.id, riding.id)

        existing = self.db.query(Nomination.id).filter(
            Nomination.race_id == race.id,
            Nomination.nominator_id == nominator_id,
            Nomination.nominee_id == nominee_id
        ).first()
        if existing:
            self.db.rollback()
            raise ConflictError(f"You have already nominated {nominee.name} in this race")

        self.db.add(Nomination(
            race_id=race.id,
            convention_id=convention.id,
            riding_id=riding.id,
            nominator_id=nominator_id,
            nominee_id=nominee_id,
            message=message or "",
        ))
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent request by the same nominator won
            self.db.rollback()
            raise ConflictError(f"You have already nominated {nominee.name} in this race")

        race_id = race.id
        nomination_count = self.count_nominations(race_id, nominee_id)
        logger.info("User %s nominated %s in race %s (count %d)",
                    nominator_id, nominee_id, race_id, nomination_count)

        result_message = (
            f"Successfully nominated {nominee.name} for {riding.name}! "
            f"They now have {nomination_count} nomination(s)."
        )
        self.notifications.notify_best_effort(
            [nominee_id],
            NOMINATION,
            "You received a new nomination",
            result_message,
            {
                "nominatorId": nominator_id,
                "nomineeId": nominee_id,
                "raceId": race_id,
                "ridingName": riding.name,
                "nominationCount": nomination_count,
            },
        )
        return NominationResult(
            success=True,
            message=result_message,
            race_id=race_id,
            nomination_count=nomination_count,
            riding=LocationInfo.model_validate(riding),
        )

    async def get_nominations_for_user(self, convention_id: str, user_id: str) -> List[NominationGroup]:
        """Nominations a member received in this convention, grouped by race"""
        rows = self.db.query(Nomination, User).join(
            User, User.id == Nomination.nominator_id
        ).filter(
            Nomination.convention_id == convention_id,
            Nomination.nominee_id == user_id
        ).order_by(Nomination.created_at.desc()).all()

        by_race: Dict[str, List[NominationInfo]] = {}
        for nomination, nominator in rows:
            by_race.setdefault(nomination.race_id, []).append(NominationInfo(
                nominator_id=nominator.id,
                nominator_name=nominator.name,
                message=nomination.message,
                created_at=nomination.created_at,
            ))

        accepted = {
            race_id for (race_id,) in self.db.query(Candidacy.race_id).filter(
                Candidacy.user_id == user_id,
                Candidacy.convention_id == convention_id
            ).all()
        }

        groups = []
        for race_id, nominations in by_race.items():
            race = self.db.query(NominationRace).filter(NominationRace.id == race_id).first()
            groups.append(NominationGroup(
                race=self.races.summarize(race),
                riding=LocationInfo.model_validate(race.riding) if race.riding else None,
                nominations=nominations,
                nomination_count=len(nominations),
                has_accepted=race_id in accepted,
            ))
        groups.sort(key=lambda g: g.nomination_count, reverse=True)
        return groups

    async def decline(self, user_id: str, race_id: str) -> int:
        """Delete every nomination the member holds in the race; returns how many"""
        deleted = self.db.query(Nomination).filter(
            Nomination.race_id == race_id,
            Nomination.nominee_id == user_id
        ).delete(synchronize_session=False)
        self.db.commit()
        if deleted:
            logger.info("User %s declined %d nomination(s) in race %s", user_id, deleted, race_id)
        return deleted

    async def get_user_nominations(self, user_id: str) -> NominationHistory:
        """Nominations received and given across all conventions"""
        received_rows = self.db.query(Nomination, User).join(
            User, User.id == Nomination.nominator_id
        ).filter(Nomination.nominee_id == user_id).order_by(Nomination.created_at.desc()).all()
        given_rows = self.db.query(Nomination, User).join(
            User, User.id == Nomination.nominee_id
        ).filter(Nomination.nominator_id == user_id).order_by(Nomination.created_at.desc()).all()

        received = [
            NominationInfo(
                nominator_id=nominator.id,
                nominator_name=nominator.name,
                message=n.message,
                created_at=n.created_at,
            ) for n, nominator in received_rows
        ]
        given = [
            NominationGiven(
                nominee_id=nominee.id,
                nominee_name=nominee.name,
                race_id=n.race_id,
                message=n.message,
                created_at=n.created_at,
            ) for n, nominee in given_rows
        ]
        return NominationHistory(
            received=received,
            given=given,
            received_count=len(received),
            given_count=len(given),
        )
