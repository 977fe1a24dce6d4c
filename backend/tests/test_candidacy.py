import pytest

from civicvote.core.exceptions import ConflictError, NotFoundError, ValidationError
from civicvote.models.candidacy import Candidacy
from civicvote.models.convention import Convention
from civicvote.models.endorsement import Endorsement
from civicvote.models.idea import Idea, IdeaSupport
from civicvote.models.nomination import Nomination
from civicvote.models.user import User
from civicvote.services.candidacy_service import CandidacyService
from civicvote.services.nomination_service import NominationService
from civicvote.services.race_service import RaceService
from civicvote.services.voting_service import VotingService
from conftest import CONVENTION_ID, RIDING_ID, add_user, enter_race, run


@pytest.fixture
def service(db):
    return CandidacyService(db)


@pytest.fixture
def nominations(db):
    return NominationService(db)


def test_accept_snapshots_nomination_count(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(nominations.nominate("carol", "alice", CONVENTION_ID))

    result = run(service.accept("alice", race_id, CONVENTION_ID))
    assert result.success
    assert result.nomination_count == 2
    assert result.riding.id == RIDING_ID

    candidacy = db.query(Candidacy).filter(Candidacy.user_id == "alice").one()
    assert candidacy.race_id == race_id
    assert candidacy.nomination_count == 2
    assert db.query(User).filter(User.id == "alice").one().candidate is True


def test_accept_twice_returns_existing(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(service.accept("alice", race_id, CONVENTION_ID))
    again = run(service.accept("alice", race_id, CONVENTION_ID))
    assert again.success
    assert again.nomination_count == 1
    assert db.query(Candidacy).count() == 1


def test_accept_requires_a_nomination(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    with pytest.raises(ValidationError, match="not been nominated"):
        run(service.accept("carol", race_id, CONVENTION_ID))


def test_accept_race_of_other_convention(db, service, nominations):
    db.add(Convention(id="conv-2030", name="Convention 2030", year=2030,
                      status="wave1-nominations", current_wave=1))
    db.commit()
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    with pytest.raises(ValidationError):
        run(service.accept("alice", race_id, "conv-2030"))


def test_one_candidacy_per_convention(db, service, nominations):
    first = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    # a nomination recorded in a second race for the same member
    second = run(nominations.nominate("bob", "frank", CONVENTION_ID)).race_id
    db.add(Nomination(race_id=second, convention_id=CONVENTION_ID, riding_id="fr-43",
                      nominator_id="carol", nominee_id="alice"))
    db.commit()

    run(service.accept("alice", first, CONVENTION_ID))
    with pytest.raises(ConflictError, match="Withdraw first"):
        run(service.accept("alice", second, CONVENTION_ID))
    assert db.query(Candidacy).filter(Candidacy.user_id == "alice").count() == 1


def test_withdraw_keeps_nominations(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(service.accept("alice", race_id, CONVENTION_ID))

    assert run(service.withdraw("alice", race_id)) is True
    assert db.query(Candidacy).count() == 0
    assert nominations.count_nominations(race_id, "alice") == 1
    assert db.query(User).filter(User.id == "alice").one().candidate is False

    # nothing left to withdraw
    assert run(service.withdraw("alice", race_id)) is False


def test_withdraw_rejected_while_voting(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(service.accept("alice", race_id, CONVENTION_ID))
    run(VotingService(db).start_voting(race_id))

    with pytest.raises(ConflictError, match="voting"):
        run(service.withdraw("alice", race_id))
    assert db.query(Candidacy).count() == 1


def test_accept_rejected_once_voting_started(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(nominations.nominate("bob", "carol", CONVENTION_ID))
    run(service.accept("alice", race_id, CONVENTION_ID))
    run(VotingService(db).start_voting(race_id))

    with pytest.raises(ConflictError):
        run(service.accept("carol", race_id, CONVENTION_ID))


def test_candidacy_status(db, service, nominations):
    race_id = run(nominations.nominate("bob", "alice", CONVENTION_ID)).race_id
    run(nominations.nominate("carol", "alice", CONVENTION_ID))

    status = run(service.get_candidacy_status("alice", CONVENTION_ID))
    assert status.is_running is False
    assert status.nomination_count == 2
    assert status.location.id == RIDING_ID

    run(service.accept("alice", race_id, CONVENTION_ID))
    status = run(service.get_candidacy_status("alice", CONVENTION_ID))
    assert status.is_running is True
    assert status.candidacy.race_id == race_id
    assert status.candidacy.province.code == "BC"

    add_user(db, "newcomer", riding_id=None)
    status = run(service.get_candidacy_status("newcomer", CONVENTION_ID))
    assert status.is_running is False
    assert status.location is None


def test_race_detail_ranks_candidates_by_points(db, service, nominations):
    race_id = enter_race(db, "alice", ["dave"])
    enter_race(db, "bob", ["dave"])
    db.add(Idea(id="idea-1", author_id="bob", title="Transit"))
    db.add_all([IdeaSupport(idea_id="idea-1", user_id=u) for u in ("carol", "dave")])
    db.add(Endorsement(endorser_id="erin", endorsee_id="alice"))
    db.query(User).filter(User.id == "alice").update({"strategic_points": 1})
    db.commit()

    detail = run(RaceService(db).get_race_by_id(race_id))
    assert [(c.id, c.points, c.endorsement_count) for c in detail.candidates] == [
        ("bob", 2, 0), ("alice", 1, 1)
    ]
    assert detail.convention.id == CONVENTION_ID
    with pytest.raises(NotFoundError):
        run(RaceService(db).get_race_by_id("race-missing"))
