"""
Conventions, the phase machine and the wave scheduler
"""

import logging
from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session
from civicvote.core.exceptions import ConflictError, NotFoundError, ValidationError
from civicvote.core.phases import (
    ConventionPhase, PhaseKind, VALID_STATUSES, WAVES, WAVE_NAMES, WAVE_PROVINCES
)
from civicvote.models.ballot import Ballot
from civicvote.models.candidacy import Candidacy
from civicvote.models.convention import Convention
from civicvote.models.nomination import Nomination
from civicvote.models.race import NominationRace, RACE_COMPLETED, RACE_OPEN, RACE_VOTING
from civicvote.schemas.common_schemas import LocationInfo
from civicvote.schemas.convention_schemas import (
    ConventionCreate, ConventionDetail, ConventionResponse, ConventionStats,
    PhaseResult, WaveInfo, WaveRacesResult
)
from civicvote.services.location_service import LocationService
from civicvote.services.race_service import RaceService

logger = logging.getLogger(__name__)

class ConventionService:
    """Convention lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationService(db)
        self.races = RaceService(db)

    def _get(self, convention_id: str) -> Convention:
        convention = self.db.query(Convention).filter(Convention.id == convention_id).first()
        if not convention:
            raise NotFoundError("Convention not found")
        return convention

    def _race_count(self, convention_id: str) -> int:
        return self.db.query(func.count(NominationRace.id)).filter(
            NominationRace.convention_id == convention_id
        ).scalar() or 0

    def to_response(self, convention: Convention) -> ConventionResponse:
        return ConventionResponse(
            id=convention.id,
            name=convention.name,
            year=convention.year,
            status=convention.status,
            current_wave=convention.current_wave or 0,
            country_id=convention.country_id,
            created_at=convention.created_at,
            race_count=self._race_count(convention.id),
            waves=[WaveInfo(**w) for w in WAVES],
        )

    async def list_conventions(self) -> List[ConventionResponse]:
        conventions = self.db.query(Convention).order_by(Convention.year.desc()).all()
        return [self.to_response(c) for c in conventions]

    async def get_convention(self, convention_id: str) -> ConventionDetail:
        """Convention with its country and current-wave races"""
        convention = self._get(convention_id)
        base = self.to_response(convention)
        return ConventionDetail(
            **base.model_dump(),
            country=LocationInfo.model_validate(convention.country) if convention.country else None,
            races=await self.races.get_races_for_convention(convention_id),
        )

    async def create_convention(self, data: ConventionCreate) -> ConventionResponse:
        convention_id = data.id or f"conv-{data.year}"
        if self.db.query(Convention.id).filter(Convention.id == convention_id).first():
            raise ConflictError(f"Convention {convention_id} already exists")
        if data.country_id and not self.locations.get_location(data.country_id):
            raise NotFoundError("Country not found")

        convention = Convention(
            id=convention_id,
            name=data.name,
            year=data.year,
            status=PhaseKind.UPCOMING.value,
            current_wave=0,
            country_id=data.country_id,
        )
        self.db.add(convention)
        self.db.commit()
        self.db.refresh(convention)
        logger.info("Created convention %s (%s)", convention.id, convention.name)
        return self.to_response(convention)

    # ---- waves ---------------------------------------------------------

    async def create_races_for_wave(self, convention_id: str, wave: int) -> WaveRacesResult:
        """One race per federal riding in the wave's provinces; safe to repeat"""
        convention = self._get(convention_id)
        provinces = WAVE_PROVINCES.get(wave)
        if not provinces:
            return WaveRacesResult(
                wave=wave,
                races_created=0,
                debug="Invalid wave",
                message=f"Wave {wave} does not exist",
            )

        counts = self.locations.riding_counts_by_province(provinces)
        debug = ", ".join(f"{code}: {counts.get(code, 0)} ridings" for code in provinces)
        ridings = self.locations.federal_ridings_for_provinces(provinces)

        created = 0
        for _, riding in ridings:
            if self.races.ensure_race(convention.id, riding.id, wave=wave):
                created += 1
        self.db.commit()

        races_total = self.db.query(func.count(NominationRace.id)).filter(
            NominationRace.convention_id == convention.id,
            NominationRace.wave == wave
        ).scalar() or 0

        if not ridings:
            message = (f"No federal ridings found for {', '.join(provinces)}. "
                       "Seed the location data first.")
            logger.warning("Wave %d of %s has no federal ridings (%s)", wave, convention.id, debug)
        else:
            message = f"Created {created} race(s) for wave {wave} ({races_total} total)"
            logger.info("Wave %d of %s: %s; %s", wave, convention.id, debug, message)

        return WaveRacesResult(
            wave=wave,
            races_created=created,
            races_total=races_total,
            provinces=provinces,
            wave_name=WAVE_NAMES.get(wave),
            debug=debug,
            message=message,
        )

    async def create_races_for_current_wave(self, convention_id: str) -> WaveRacesResult:
        convention = self._get(convention_id)
        if not convention.current_wave:
            raise ValidationError("No wave has started yet")
        return await self.create_races_for_wave(convention.id, convention.current_wave)

    # ---- phases --------------------------------------------------------

    async def _apply_phase(self, convention: Convention, phase: ConventionPhase) -> PhaseResult:
        previous = convention.status
        convention.phase = phase
        if phase.kind == PhaseKind.UPCOMING:
            convention.current_wave = 0
        self.db.commit()
        logger.info("Convention %s moved %s -> %s", convention.id, previous, phase.tag)

        races_created = 0
        message = f"Convention is now in phase {phase.tag}"
        if phase.accepts_nominations():
            wave_result = await self.create_races_for_wave(convention.id, phase.wave)
            races_created = wave_result.races_created
            message = f"{message}. {wave_result.message}"

        return PhaseResult(
            success=True,
            previous_status=previous,
            new_status=phase.tag,
            current_wave=convention.current_wave or 0,
            message=message,
            races_created=races_created,
            wave_name=WAVE_NAMES.get(phase.wave) if phase.wave else None,
        )

    async def set_phase(self, convention_id: str, status: str) -> PhaseResult:
        """Force a phase; entering a nominations phase creates that wave's races"""
        convention = self._get(convention_id)
        try:
            phase = ConventionPhase.parse(status)
        except ValueError:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
        return await self._apply_phase(convention, phase)

    async def advance_phase(self, convention_id: str) -> PhaseResult:
        """Move to the next phase in the wave sequence"""
        convention = self._get(convention_id)
        current = convention.phase
        following = current.next()
        if following == current:
            raise ValidationError("Convention is already completed")
        return await self._apply_phase(convention, following)

    async def get_convention_stats(self, convention_id: str) -> ConventionStats:
        convention = self._get(convention_id)
        race_counts = dict(self.db.query(NominationRace.status, func.count(NominationRace.id)).filter(
            NominationRace.convention_id == convention_id
        ).group_by(NominationRace.status).all())
        total_candidates = self.db.query(func.count(Candidacy.id)).filter(
            Candidacy.convention_id == convention_id
        ).scalar() or 0
        total_nominations = self.db.query(func.count(Nomination.id)).filter(
            Nomination.convention_id == convention_id
        ).scalar() or 0
        total_votes = self.db.query(func.count(Ballot.id)).join(
            NominationRace, NominationRace.id == Ballot.race_id
        ).filter(NominationRace.convention_id == convention_id).scalar() or 0

        return ConventionStats(
            status=convention.status,
            current_wave=convention.current_wave or 0,
            total_races=sum(race_counts.values()),
            total_candidates=total_candidates,
            total_nominations=total_nominations,
            total_votes=total_votes,
            open_races=race_counts.get(RACE_OPEN, 0),
            voting_races=race_counts.get(RACE_VOTING, 0),
            completed_races=race_counts.get(RACE_COMPLETED, 0),
        )
