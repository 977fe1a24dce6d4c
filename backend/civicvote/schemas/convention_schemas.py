"""
Convention, race and wave schemas
"""

from typing import List, Optional
from pydantic import Field
from civicvote.schemas.common_schemas import APIModel, LocationInfo, Timestamp, UserSummary

class WaveInfo(APIModel):
    """One geographic wave"""
    wave: int
    name: str
    provinces: List[str]
    color: str

class ConventionCreate(APIModel):
    """Request to create a convention"""
    id: Optional[str] = Field(default=None, description="Defaults to conv-<year>")
    name: str = Field(..., min_length=1, max_length=200)
    year: int = Field(..., ge=2000, le=2200)
    country_id: Optional[str] = None

class ConventionResponse(APIModel):
    """Convention"""
    id: str
    name: str
    year: int
    status: str
    current_wave: int
    country_id: Optional[str] = None
    created_at: Optional[Timestamp] = None
    race_count: int = 0
    waves: List[WaveInfo] = []

class RaceSummary(APIModel):
    """Race as listed under a convention"""
    id: str
    convention_id: str
    status: str
    current_round: int
    wave: Optional[int] = None
    winner_id: Optional[str] = None
    riding: Optional[LocationInfo] = None
    province_name: Optional[str] = None
    candidate_count: int = 0
    candidates: List[UserSummary] = []

class ConventionDetail(ConventionResponse):
    """Convention with its country and races"""
    country: Optional[LocationInfo] = None
    races: List[RaceSummary] = []

class CandidateDetail(APIModel):
    """Candidate in a race, ranked by points then endorsements"""
    id: str
    name: str
    nominated_at: Optional[Timestamp] = None
    nomination_count: int = 0
    endorsement_count: int = 0
    points: int = 0

class RaceDetail(APIModel):
    """Race with riding, province, convention and ranked candidates"""
    id: str
    convention_id: str
    status: str
    current_round: int
    active_round_id: Optional[str] = None
    wave: Optional[int] = None
    winner_id: Optional[str] = None
    created_at: Optional[Timestamp] = None
    riding: LocationInfo
    province: Optional[LocationInfo] = None
    convention: Optional[ConventionResponse] = None
    candidates: List[CandidateDetail] = []

class SetPhaseRequest(APIModel):
    """Admin request to force a phase"""
    status: str

class PhaseResult(APIModel):
    """Outcome of a phase change"""
    success: bool
    previous_status: str
    new_status: str
    current_wave: int
    message: str
    races_created: int = 0
    wave_name: Optional[str] = None

class WaveRacesResult(APIModel):
    """Outcome of bulk race creation for a wave"""
    wave: int
    races_created: int
    races_total: int = 0
    provinces: List[str] = []
    wave_name: Optional[str] = None
    debug: str = ""
    message: str = ""

class ConventionStats(APIModel):
    """Admin overview counters"""
    status: str
    current_wave: int
    total_races: int
    total_candidates: int
    total_nominations: int
    total_votes: int
    open_races: int
    voting_races: int
    completed_races: int
