"""
Convention, nomination and candidacy API routes
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from civicvote.api.deps import CurrentUser, require_admin, require_verified_user
from civicvote.core.database import get_db
from civicvote.core.exceptions import ConventionError
from civicvote.schemas.common_schemas import SuccessResponse
from civicvote.schemas.convention_schemas import (
    ConventionCreate, ConventionDetail, ConventionResponse, RaceDetail, RaceSummary
)
from civicvote.schemas.nomination_schemas import (
    CandidacyStatus, NominateRequest, NominationGroup, NominationHistory,
    NominationResult, RaceActionRequest
)
from civicvote.services.candidacy_service import CandidacyService
from civicvote.services.convention_service import ConventionService
from civicvote.services.nomination_service import NominationService
from civicvote.services.race_service import RaceService

router = APIRouter()

@router.get("", response_model=List[ConventionResponse])
async def list_conventions(db: Session = Depends(get_db)):
    """List conventions with the wave schedule"""
    return await ConventionService(db).list_conventions()

@router.post("", response_model=ConventionResponse)
async def create_convention(
    data: ConventionCreate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a convention (admin)"""
    try:
        return await ConventionService(db).create_convention(data)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/races/{race_id}", response_model=RaceDetail)
async def get_race(race_id: str, db: Session = Depends(get_db)):
    """Race detail with ranked candidates"""
    try:
        return await RaceService(db).get_race_by_id(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/users/{user_id}/nominations", response_model=NominationHistory)
async def get_user_nominations(user_id: str, db: Session = Depends(get_db)):
    """Nominations a member received and gave"""
    return await NominationService(db).get_user_nominations(user_id)

@router.get("/{convention_id}", response_model=ConventionDetail)
async def get_convention(convention_id: str, db: Session = Depends(get_db)):
    """Convention with current-wave races"""
    try:
        return await ConventionService(db).get_convention(convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/{convention_id}/races", response_model=List[RaceSummary])
async def get_convention_races(convention_id: str, db: Session = Depends(get_db)):
    """Races of the convention's current wave"""
    try:
        return await RaceService(db).get_races_for_convention(convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/{convention_id}/nominate", response_model=NominationResult)
async def nominate(
    convention_id: str,
    data: NominateRequest,
    user: CurrentUser = Depends(require_verified_user),
    db: Session = Depends(get_db)
):
    """Nominate a member for the riding they live in"""
    try:
        user.ensure_self(data.nominator_id)
        return await NominationService(db).nominate(
            nominator_id=user.id,
            nominee_id=data.nominee_id,
            convention_id=convention_id,
            riding_id=data.riding_id,
            riding_type=data.riding_type,
            race_id=data.race_id,
            message=data.message,
        )
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/{convention_id}/nominations/{user_id}", response_model=List[NominationGroup])
async def get_nominations_for_user(convention_id: str, user_id: str, db: Session = Depends(get_db)):
    """Nominations a member received in this convention, grouped by race"""
    return await NominationService(db).get_nominations_for_user(convention_id, user_id)

@router.post("/{convention_id}/accept-nomination", response_model=NominationResult)
async def accept_nomination(
    convention_id: str,
    data: RaceActionRequest,
    user: CurrentUser = Depends(require_verified_user),
    db: Session = Depends(get_db)
):
    """Start running in a race"""
    try:
        user.ensure_self(data.user_id)
        return await CandidacyService(db).accept(user.id, data.race_id, convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/{convention_id}/decline-nomination", response_model=SuccessResponse)
async def decline_nomination(
    convention_id: str,
    data: RaceActionRequest,
    user: CurrentUser = Depends(require_verified_user),
    db: Session = Depends(get_db)
):
    """Decline every nomination held in a race"""
    try:
        user.ensure_self(data.user_id)
        deleted = await NominationService(db).decline(user.id, data.race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(success=True, message=f"Declined {deleted} nomination(s)")

@router.post("/{convention_id}/withdraw", response_model=SuccessResponse)
async def withdraw(
    convention_id: str,
    data: RaceActionRequest,
    user: CurrentUser = Depends(require_verified_user),
    db: Session = Depends(get_db)
):
    """Stop running in a race"""
    try:
        user.ensure_self(data.user_id)
        removed = await CandidacyService(db).withdraw(user.id, data.race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    message = "You have withdrawn from the race" if removed else "You were not running in this race"
    return SuccessResponse(success=True, message=message)

@router.get("/{convention_id}/candidacy/{user_id}", response_model=CandidacyStatus)
async def get_candidacy(convention_id: str, user_id: str, db: Session = Depends(get_db)):
    """Whether and where a member is running"""
    try:
        return await CandidacyService(db).get_candidacy_status(user_id, convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
