"""
Voting round schemas
"""

from typing import List, Optional
from pydantic import Field
from civicvote.schemas.common_schemas import APIModel, LocationInfo, Timestamp, UserSummary

class VoteRequest(APIModel):
    """Ballot for the active round"""
    candidate_id: str = Field(..., min_length=1)

class CloseRoundRequest(APIModel):
    """Optional guard: only close if the race is still on this round"""
    expected_round: Optional[int] = Field(default=None, ge=1)

class StartVotingResult(APIModel):
    """Outcome of starting voting"""
    success: bool
    message: str
    round_id: Optional[str] = None

class VoteResult(APIModel):
    """Outcome of casting a ballot"""
    success: bool
    message: str
    round_number: Optional[int] = None

class RoundInfo(APIModel):
    """Voting round"""
    id: str
    round_number: int
    status: str
    started_at: Optional[Timestamp] = None
    closed_at: Optional[Timestamp] = None

class TallyEntry(APIModel):
    """Votes for one candidate"""
    candidate: UserSummary
    votes: int

class TallyResult(APIModel):
    """Live tallies for the current round"""
    round: Optional[RoundInfo] = None
    tallies: List[TallyEntry] = []
    total_votes: int = 0

class RaceInfo(APIModel):
    """Race state"""
    id: str
    convention_id: str
    riding_id: str
    status: str
    current_round: int
    active_round_id: Optional[str] = None
    wave: Optional[int] = None
    winner_id: Optional[str] = None

class RaceStatus(APIModel):
    """Voting status of a race"""
    race: RaceInfo
    current_round: Optional[RoundInfo] = None
    total_rounds: int
    active_candidates: List[UserSummary] = []
    is_complete: bool
    winner: Optional[UserSummary] = None

class CloseRoundResult(APIModel):
    """Outcome of closing a round"""
    success: bool
    result: str                               # winner | elimination
    round_number: int
    total_votes: int
    winner: Optional[UserSummary] = None
    votes: Optional[int] = None
    eliminated: Optional[UserSummary] = None
    eliminated_votes: Optional[int] = None
    next_round: Optional[int] = None
    remaining_candidates: Optional[int] = None

class HasVotedResult(APIModel):
    """Whether a member already voted in the active round"""
    has_active_round: bool
    has_voted: bool

class RoundHistoryEntry(APIModel):
    """A past or current round with its result"""
    round: RoundInfo
    tallies: List[TallyEntry] = []
    total_votes: int = 0
    eliminated: Optional[UserSummary] = None

class VotingRaceInfo(APIModel):
    """Race listed in the voting overview"""
    race: RaceInfo
    riding: Optional[LocationInfo] = None
    province: Optional[LocationInfo] = None
    candidates: List[UserSummary] = []
    current_round: int = 0
