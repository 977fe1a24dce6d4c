"""
Admin API routes: phases and wave races
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from civicvote.api.deps import CurrentUser, require_admin
from civicvote.core.database import get_db
from civicvote.core.exceptions import ConventionError
from civicvote.schemas.convention_schemas import (
    ConventionStats, PhaseResult, SetPhaseRequest, WaveRacesResult
)
from civicvote.services.convention_service import ConventionService

router = APIRouter()

@router.post("/conventions/{convention_id}/set-phase", response_model=PhaseResult)
async def set_phase(
    convention_id: str,
    data: SetPhaseRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Force the convention into a phase"""
    try:
        return await ConventionService(db).set_phase(convention_id, data.status)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/conventions/{convention_id}/advance", response_model=PhaseResult)
async def advance_phase(
    convention_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Move the convention to its next phase"""
    try:
        return await ConventionService(db).advance_phase(convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/conventions/{convention_id}/create-wave-races", response_model=WaveRacesResult)
async def create_wave_races(
    convention_id: str,
    wave: Optional[int] = None,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create races for a wave (defaults to the current wave)"""
    service = ConventionService(db)
    try:
        if wave is None:
            return await service.create_races_for_current_wave(convention_id)
        return await service.create_races_for_wave(convention_id, wave)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/conventions/{convention_id}/stats", response_model=ConventionStats)
async def get_stats(
    convention_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Counters for the admin overview"""
    try:
        return await ConventionService(db).get_convention_stats(convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
