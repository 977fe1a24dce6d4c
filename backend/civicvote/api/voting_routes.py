"""
Voting API routes
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from civicvote.api.deps import CurrentUser, get_current_user, require_admin, require_verified_user
from civicvote.api.websocket_routes import get_websocket_manager
from civicvote.core.database import get_db
from civicvote.core.exceptions import ConventionError
from civicvote.schemas.voting_schemas import (
    CloseRoundRequest, CloseRoundResult, HasVotedResult, RaceStatus, RoundHistoryEntry,
    StartVotingResult, TallyResult, VoteRequest, VoteResult, VotingRaceInfo
)
from civicvote.services.voting_service import VotingService

logger = logging.getLogger(__name__)

router = APIRouter()

async def broadcast(race_id: str, message: dict):
    """Push an event to race observers; a failed push never fails the request"""
    try:
        await get_websocket_manager().broadcast_to_race(message, race_id)
    except Exception:
        logger.exception("Broadcast to race %s failed", race_id)

@router.get("/races/{convention_id}", response_model=List[VotingRaceInfo])
async def get_voting_races(convention_id: str, db: Session = Depends(get_db)):
    """Races of a convention in a voting phase"""
    try:
        return await VotingService(db).get_voting_races(convention_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/race/{race_id}/start", response_model=StartVotingResult)
async def start_voting(
    race_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Open round 1 (admin)"""
    try:
        result = await VotingService(db).start_voting(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    await broadcast(race_id, {"type": "voting_started", "raceId": race_id, "roundId": result.round_id})
    return result

@router.post("/race/{race_id}/vote", response_model=VoteResult)
async def cast_vote(
    race_id: str,
    data: VoteRequest,
    user: CurrentUser = Depends(require_verified_user),
    db: Session = Depends(get_db)
):
    """Cast a ballot in the active round"""
    service = VotingService(db)
    try:
        result = await service.cast_vote(user.id, race_id, data.candidate_id)
        tallies = await service.tally(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    await broadcast(race_id, {
        "type": "vote_cast",
        "raceId": race_id,
        "tallies": tallies.model_dump(mode="json", by_alias=True),
    })
    return result

@router.get("/race/{race_id}/status", response_model=RaceStatus)
async def get_race_status(race_id: str, db: Session = Depends(get_db)):
    """Voting status of a race"""
    try:
        return await VotingService(db).get_race_status(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/race/{race_id}/tallies", response_model=TallyResult)
async def get_tallies(race_id: str, db: Session = Depends(get_db)):
    """Live tallies of the current round"""
    try:
        return await VotingService(db).tally(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.get("/race/{race_id}/rounds", response_model=List[RoundHistoryEntry])
async def get_rounds(race_id: str, db: Session = Depends(get_db)):
    """Every round of the race with its tallies"""
    try:
        return await VotingService(db).get_round_history(race_id)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

@router.post("/race/{race_id}/close-round", response_model=CloseRoundResult)
async def close_round(
    race_id: str,
    data: Optional[CloseRoundRequest] = None,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Close the active round: declare a winner or eliminate the last place"""
    expected_round = data.expected_round if data else None
    try:
        result = await VotingService(db).close_round_and_advance(race_id, expected_round)
    except ConventionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    await broadcast(race_id, {
        "type": "round_closed",
        "raceId": race_id,
        "result": result.model_dump(mode="json", by_alias=True),
    })
    return result

@router.get("/race/{race_id}/has-voted/{user_id}", response_model=HasVotedResult)
async def has_voted(
    race_id: str,
    user_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether the caller already voted in the active round"""
    if user_id != user.id:
        raise HTTPException(status_code=403, detail="You can only check your own ballot")
    return await VotingService(db).has_voted(user_id, race_id)
