"""
Nomination and candidacy schemas
"""

from typing import List, Optional
from pydantic import Field
from civicvote.schemas.common_schemas import APIModel, LocationInfo, Timestamp
from civicvote.schemas.convention_schemas import RaceSummary

class NominateRequest(APIModel):
    """Request to nominate a member"""
    nominee_id: str = Field(..., min_length=1)
    nominator_id: Optional[str] = Field(default=None, description="Must match the caller when given")
    riding_id: Optional[str] = None
    riding_type: Optional[str] = None
    race_id: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=1000)

class NominationResult(APIModel):
    """Outcome of a nomination or acceptance"""
    success: bool
    message: str
    race_id: str
    nomination_count: int
    riding: Optional[LocationInfo] = None

class RaceActionRequest(APIModel):
    """accept / decline / withdraw body"""
    race_id: str = Field(..., min_length=1)
    user_id: Optional[str] = Field(default=None, description="Must match the caller when given")

class NominationInfo(APIModel):
    """One nomination received"""
    nominator_id: str
    nominator_name: str
    message: Optional[str] = None
    created_at: Optional[Timestamp] = None

class NominationGroup(APIModel):
    """Nominations a member received in one race"""
    race: RaceSummary
    riding: Optional[LocationInfo] = None
    nominations: List[NominationInfo] = []
    nomination_count: int
    has_accepted: bool

class NominationGiven(APIModel):
    """One nomination a member made"""
    nominee_id: str
    nominee_name: str
    race_id: str
    message: Optional[str] = None
    created_at: Optional[Timestamp] = None

class NominationHistory(APIModel):
    """All nominations a member received and gave"""
    received: List[NominationInfo] = []
    given: List[NominationGiven] = []
    received_count: int = 0
    given_count: int = 0

class CandidacyInfo(APIModel):
    """Race a member is running in"""
    race_id: str
    riding: Optional[LocationInfo] = None
    province: Optional[LocationInfo] = None
    nomination_count: int
    nominated_at: Optional[Timestamp] = None

class CandidacyStatus(APIModel):
    """Whether and where a member is running"""
    is_running: bool
    candidacy: Optional[CandidacyInfo] = None
    location: Optional[LocationInfo] = None
    nomination_count: int = 0
