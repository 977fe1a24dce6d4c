"""
Voting round engine (multi-round elimination)

Per race: no round -> round 1 active -> ... -> completed with a winner.
Each round accepts one ballot per verified voter. Closing a round either
declares a winner (strict majority, or at most two active candidates left)
or eliminates the lowest candidate and opens the next round.

Ties are broken deterministically. Candidates are ranked by votes (desc),
then the nomination count they accepted with (desc), then acceptance time
(earliest first), then user id. The winner is the first of that order, the
eliminated candidate the last.

Concurrency: the (voter, round) unique index rejects a second ballot, and
advancing a round is a compare-and-swap on the race's current round.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from civicvote.core.config import settings
from civicvote.core.exceptions import (
    ConflictError, NotFoundError, RoundConflictError, ValidationError
)
from civicvote.core.utils import utcnow
from civicvote.models.ballot import Ballot
from civicvote.models.candidacy import Candidacy
from civicvote.models.convention import Convention
from civicvote.models.elimination import Elimination
from civicvote.models.race import NominationRace, RACE_COMPLETED, RACE_VOTING
from civicvote.models.round_model import VotingRound, ROUND_ACTIVE, ROUND_COMPLETED
from civicvote.models.user import User
from civicvote.schemas.common_schemas import LocationInfo, UserSummary
from civicvote.schemas.voting_schemas import (
    CloseRoundResult, HasVotedResult, RaceInfo, RaceStatus, RoundHistoryEntry,
    RoundInfo, StartVotingResult, TallyEntry, TallyResult, VoteResult, VotingRaceInfo
)
from civicvote.services.location_service import LocationService
from civicvote.services.notification_service import NotificationService, ROUND_RESULT

logger = logging.getLogger(__name__)


@dataclass
class RankedCandidate:
    user: User
    candidacy: Candidacy
    votes: int

    def rank_key(self):
        return (
            -self.votes,
            -(self.candidacy.nomination_count or 0),
            self.candidacy.nominated_at or datetime.max,
            self.user.id,
        )

    def to_entry(self) -> TallyEntry:
        return TallyEntry(candidate=UserSummary.model_validate(self.user), votes=self.votes)


def rank(candidates: List[RankedCandidate]) -> List[RankedCandidate]:
    return sorted(candidates, key=RankedCandidate.rank_key)


class VotingService:
    """Voting rounds for nomination races"""

    def __init__(self, db: Session):
        self.db = db
        self.locations = LocationService(db)
        self.notifications = NotificationService(db)

    # ---- lookups -------------------------------------------------------

    def _get_race(self, race_id: str, lock: bool = False) -> NominationRace:
        query = self.db.query(NominationRace).filter(NominationRace.id == race_id)
        if lock:
            # FOR UPDATE where the backend supports it; SQLite ignores it
            query = query.with_for_update()
        race = query.first()
        if not race:
            raise NotFoundError("Race not found")
        return race

    def _current_round(self, race: NominationRace) -> Optional[VotingRound]:
        """The active round, or the last one once the race is decided"""
        if race.active_round_id:
            return self.db.get(VotingRound, race.active_round_id)
        if race.current_round:
            return self.db.query(VotingRound).filter(
                VotingRound.race_id == race.id,
                VotingRound.round_number == race.current_round
            ).first()
        return None

    def _eliminated_ids(self, race_id: str):
        return select(Elimination.candidate_id).where(Elimination.race_id == race_id)

    def _active_candidates(self, race_id: str) -> List[tuple]:
        """(user, candidacy) for candidates still in the race"""
        return self.db.query(User, Candidacy).join(
            Candidacy, Candidacy.user_id == User.id
        ).filter(
            Candidacy.race_id == race_id,
            Candidacy.user_id.not_in(self._eliminated_ids(race_id))
        ).all()

    def _is_active_candidate(self, race_id: str, candidate_id: str) -> bool:
        return self.db.query(Candidacy.id).filter(
            Candidacy.race_id == race_id,
            Candidacy.user_id == candidate_id,
            Candidacy.user_id.not_in(self._eliminated_ids(race_id))
        ).first() is not None

    def _vote_counts(self, round_id: str) -> Dict[str, int]:
        rows = self.db.query(Ballot.candidate_id, func.count(Ballot.id)).filter(
            Ballot.round_id == round_id
        ).group_by(Ballot.candidate_id).all()
        return {candidate_id: count for candidate_id, count in rows}

    def _ranked_tallies(self, race_id: str, round_id: str) -> List[RankedCandidate]:
        """Fresh tallies over active candidates, zero-vote candidates included"""
        counts = self._vote_counts(round_id)
        return rank([
            RankedCandidate(user=user, candidacy=candidacy, votes=counts.get(user.id, 0))
            for user, candidacy in self._active_candidates(race_id)
        ])

    # ---- state transitions ---------------------------------------------

    async def start_voting(self, race_id: str) -> StartVotingResult:
        """Open round 1; refused when the race already has any round"""
        race = self._get_race(race_id, lock=True)
        existing = self.db.query(func.count(VotingRound.id)).filter(
            VotingRound.race_id == race.id
        ).scalar() or 0
        if existing > 0:
            self.db.rollback()
            return StartVotingResult(success=False, message="Voting already started for this race")

        round_id = VotingRound.make_id(race.id, 1)
        self.db.add(VotingRound(id=round_id, race_id=race.id, round_number=1, status=ROUND_ACTIVE))
        race.status = RACE_VOTING
        race.current_round = 1
        race.active_round_id = round_id
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return StartVotingResult(success=False, message="Voting already started for this race")

        logger.info("Voting started for race %s (round %s)", race_id, round_id)
        return StartVotingResult(success=True, message="Voting started", round_id=round_id)

    async def cast_vote(self, voter_id: str, race_id: str, candidate_id: str) -> VoteResult:
        """Record one ballot in the active round"""
        race = self._get_race(race_id)
        round_id = race.active_round_id
        if not round_id:
            raise ValidationError("No active voting round for this race")

        voter = self.locations.get_user(voter_id)
        if not voter.verified:
            raise ValidationError("Only verified members can vote")

        already = self.db.query(Ballot.id).filter(
            Ballot.voter_id == voter_id,
            Ballot.round_id == round_id
        ).first()
        if already:
            raise ConflictError("You have already voted in this round")

        if not self._is_active_candidate(race.id, candidate_id):
            raise ValidationError("Candidate is not active in this race")

        round_number = race.current_round
        self.db.add(Ballot(
            race_id=race.id,
            round_id=round_id,
            voter_id=voter_id,
            candidate_id=candidate_id,
        ))
        try:
            self.db.commit()
        except IntegrityError:
            # the unique (voter, round) index caught a concurrent ballot
            self.db.rollback()
            raise ConflictError("You have already voted in this round")

        logger.info("Ballot recorded in race %s round %s", race_id, round_number)
        return VoteResult(success=True, message="Vote cast successfully", round_number=round_number)

    async def tally(self, race_id: str) -> TallyResult:
        """Live tallies of the current (latest) round"""
        race = self._get_race(race_id)
        round_ = self._current_round(race)
        if round_ is None:
            return TallyResult(round=None, tallies=[], total_votes=0)

        ranked = self._ranked_tallies(race.id, round_.id)
        return TallyResult(
            round=RoundInfo.model_validate(round_),
            tallies=[c.to_entry() for c in ranked],
            total_votes=sum(c.votes for c in ranked),
        )

    async def close_round_and_advance(self, race_id: str,
                                      expected_round: Optional[int] = None) -> CloseRoundResult:
        """Close the active round: declare a winner or eliminate the last-placed candidate"""
        race = self._get_race(race_id, lock=True)
        if not race.active_round_id:
            raise ValidationError("No active voting round for this race")

        round_number = race.current_round
        if expected_round is not None and expected_round != round_number:
            raise RoundConflictError(f"Race is on round {round_number}, not round {expected_round}")

        round_ = self._current_round(race)
        ranked = self._ranked_tallies(race.id, round_.id)
        if not ranked:
            raise ValidationError("No active candidates in this race")

        total_votes = sum(c.votes for c in ranked)
        majority = next(
            (c for c in ranked if total_votes > 0 and c.votes / total_votes > settings.MAJORITY_THRESHOLD),
            None
        )

        # compare-and-swap: only the request that still sees this round may move the race
        guard = update(NominationRace).where(
            NominationRace.id == race.id,
            NominationRace.current_round == round_number,
            NominationRace.active_round_id == round_.id
        ).execution_options(synchronize_session=False)

        if majority or len(ranked) <= settings.FINAL_ROUND_CANDIDATES:
            winner = majority or ranked[0]
            moved = self.db.execute(guard.values(
                status=RACE_COMPLETED,
                winner_id=winner.user.id,
                active_round_id=None
            )).rowcount
            result = CloseRoundResult(
                success=True,
                result="winner",
                round_number=round_number,
                total_votes=total_votes,
                winner=UserSummary.model_validate(winner.user),
                votes=winner.votes,
            )
        else:
            loser = ranked[-1]
            next_number = round_number + 1
            next_round_id = VotingRound.make_id(race.id, next_number)
            moved = self.db.execute(guard.values(
                current_round=next_number,
                active_round_id=next_round_id
            )).rowcount
            if moved == 1:
                self.db.add(Elimination(
                    race_id=race.id,
                    round_id=round_.id,
                    candidate_id=loser.user.id,
                    vote_count=loser.votes,
                ))
                self.db.add(VotingRound(
                    id=next_round_id,
                    race_id=race.id,
                    round_number=next_number,
                    status=ROUND_ACTIVE,
                ))
            result = CloseRoundResult(
                success=True,
                result="elimination",
                round_number=round_number,
                total_votes=total_votes,
                eliminated=UserSummary.model_validate(loser.user),
                eliminated_votes=loser.votes,
                next_round=next_number,
                remaining_candidates=len(ranked) - 1,
            )

        if moved != 1:
            self.db.rollback()
            raise RoundConflictError("This round was already closed by another request")

        round_.status = ROUND_COMPLETED
        round_.closed_at = utcnow()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise RoundConflictError("This round was already closed by another request")

        if result.result == "winner":
            logger.info("Race %s decided in round %d: winner %s with %d/%d votes",
                        race_id, round_number, result.winner.id, result.votes, total_votes)
        else:
            logger.info("Race %s round %d: eliminated %s with %d vote(s), round %d opened",
                        race_id, round_number, result.eliminated.id, result.eliminated_votes,
                        result.next_round)
        self._notify_round_result(race_id, result)
        return result

    def _notify_round_result(self, race_id: str, result: CloseRoundResult):
        recipients = [
            user_id for (user_id,) in self.db.query(Candidacy.user_id).filter(
                Candidacy.race_id == race_id
            ).all()
        ]
        if result.result == "winner":
            title = f"{result.winner.name} won the race"
            body = f"{result.winner.name} won in round {result.round_number} with {result.votes} of {result.total_votes} votes."
        else:
            title = f"Round {result.round_number} closed"
            body = (f"{result.eliminated.name} was eliminated with {result.eliminated_votes} vote(s). "
                    f"Round {result.next_round} is now open.")
        self.notifications.notify_best_effort(
            recipients, ROUND_RESULT, title, body,
            {"raceId": race_id, **result.model_dump(mode="json", by_alias=True)},
        )

    # ---- reads ---------------------------------------------------------

    async def has_voted(self, voter_id: str, race_id: str) -> HasVotedResult:
        race = self.db.query(NominationRace).filter(NominationRace.id == race_id).first()
        if race is None or not race.active_round_id:
            return HasVotedResult(has_active_round=False, has_voted=False)
        voted = self.db.query(Ballot.id).filter(
            Ballot.voter_id == voter_id,
            Ballot.round_id == race.active_round_id
        ).first() is not None
        return HasVotedResult(has_active_round=True, has_voted=voted)

    async def get_race_status(self, race_id: str) -> RaceStatus:
        race = self._get_race(race_id)
        round_ = self._current_round(race)
        total_rounds = self.db.query(func.count(VotingRound.id)).filter(
            VotingRound.race_id == race.id
        ).scalar() or 0
        active = [UserSummary.model_validate(user) for user, _ in self._active_candidates(race.id)]
        active.sort(key=lambda u: u.name)
        return RaceStatus(
            race=RaceInfo.model_validate(race),
            current_round=RoundInfo.model_validate(round_) if round_ else None,
            total_rounds=total_rounds,
            active_candidates=active,
            is_complete=race.winner_id is not None,
            winner=UserSummary.model_validate(race.winner) if race.winner else None,
        )

    async def get_round_history(self, race_id: str) -> List[RoundHistoryEntry]:
        """Every round of the race with the tallies of the candidates active in it"""
        race = self._get_race(race_id)
        rounds = self.db.query(VotingRound).filter(
            VotingRound.race_id == race.id
        ).order_by(VotingRound.round_number).all()
        round_numbers = {r.id: r.round_number for r in rounds}

        eliminated_in: Dict[str, int] = {}
        eliminated_by_round: Dict[str, User] = {}
        for elimination in self.db.query(Elimination).filter(Elimination.race_id == race.id).all():
            eliminated_in[elimination.candidate_id] = round_numbers.get(elimination.round_id, 0)
            eliminated_by_round[elimination.round_id] = elimination.candidate

        candidates = self.db.query(User, Candidacy).join(
            Candidacy, Candidacy.user_id == User.id
        ).filter(Candidacy.race_id == race.id).all()

        history = []
        for round_ in rounds:
            counts = self._vote_counts(round_.id)
            ranked = rank([
                RankedCandidate(user=user, candidacy=candidacy, votes=counts.get(user.id, 0))
                for user, candidacy in candidates
                if eliminated_in.get(user.id, round_.round_number) >= round_.round_number
            ])
            loser = eliminated_by_round.get(round_.id)
            history.append(RoundHistoryEntry(
                round=RoundInfo.model_validate(round_),
                tallies=[c.to_entry() for c in ranked],
                total_votes=sum(c.votes for c in ranked),
                eliminated=UserSummary.model_validate(loser) if loser else None,
            ))
        return history

    async def get_voting_races(self, convention_id: str) -> List[VotingRaceInfo]:
        """Races of a convention that is in a voting phase"""
        convention = self.db.query(Convention).filter(Convention.id == convention_id).first()
        if not convention:
            raise NotFoundError("Convention not found")
        if not convention.phase.is_voting():
            return []

        races = self.db.query(NominationRace).filter(
            NominationRace.convention_id == convention_id
        ).all()
        result = []
        for race in races:
            province = self.locations.get_province(race.riding)
            candidates = [UserSummary.model_validate(u) for u, _ in self._active_candidates(race.id)]
            result.append(VotingRaceInfo(
                race=RaceInfo.model_validate(race),
                riding=LocationInfo.model_validate(race.riding) if race.riding else None,
                province=LocationInfo.model_validate(province) if province else None,
                candidates=candidates,
                current_round=race.current_round or 0,
            ))
        result.sort(key=lambda r: (
            r.province.name if r.province else "",
            r.riding.name if r.riding else ""
        ))
        return result
