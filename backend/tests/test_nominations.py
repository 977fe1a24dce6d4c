import pytest

from civicvote.core.exceptions import ConflictError, NotFoundError, ValidationError
from civicvote.models.convention import Convention
from civicvote.models.nomination import Nomination
from civicvote.models.notification import Notification
from civicvote.models.race import NominationRace
from civicvote.services.nomination_service import NominationService
from civicvote.services.race_service import RaceService
from conftest import CONVENTION_ID, RIDING_ID, run


@pytest.fixture
def service(db):
    return NominationService(db)


def test_nominate_creates_race_and_counts(db, service):
    result = run(service.nominate("bob", "alice", CONVENTION_ID))
    assert result.success
    assert result.nomination_count == 1
    assert result.riding.id == RIDING_ID

    race = db.query(NominationRace).filter(NominationRace.id == result.race_id).one()
    assert race.riding_id == RIDING_ID
    assert race.status == "open"
    assert race.current_round == 0
    assert race.wave == 1

    second = run(service.nominate("carol", "alice", CONVENTION_ID))
    assert second.race_id == result.race_id
    assert second.nomination_count == 2
    assert db.query(NominationRace).count() == 1


def test_self_nomination_rejected(db, service):
    with pytest.raises(ValidationError):
        run(service.nominate("alice", "alice", CONVENTION_ID))
    assert db.query(Nomination).count() == 0


def test_duplicate_nomination_rejected(db, service):
    run(service.nominate("bob", "alice", CONVENTION_ID))
    with pytest.raises(ConflictError):
        run(service.nominate("bob", "alice", CONVENTION_ID))
    assert service.count_nominations(
        db.query(NominationRace.id).scalar(), "alice"
    ) == 1


def test_nominee_is_locked_to_home_riding(db, service):
    with pytest.raises(ValidationError):
        run(service.nominate("bob", "alice", CONVENTION_ID, riding_id="fr-43"))
    with pytest.raises(ValidationError):
        run(service.nominate("bob", "alice", CONVENTION_ID, riding_type="provincial_riding"))

    other = run(service.nominate("alice", "frank", CONVENTION_ID))
    with pytest.raises(ValidationError):
        run(service.nominate("bob", "alice", CONVENTION_ID, race_id=other.race_id))

    # the matching riding is fine
    result = run(service.nominate("bob", "alice", CONVENTION_ID, riding_id=RIDING_ID,
                                  riding_type="federal_riding"))
    assert result.nomination_count == 1
    assert {n.riding_id for n in db.query(Nomination).all()} == {RIDING_ID, "fr-43"}


def test_nominee_without_home_riding(service):
    with pytest.raises(ValidationError, match="home riding"):
        run(service.nominate("bob", "nomad", CONVENTION_ID))


def test_unknown_users_and_convention(service):
    with pytest.raises(NotFoundError):
        run(service.nominate("bob", "ghost", CONVENTION_ID))
    with pytest.raises(NotFoundError):
        run(service.nominate("bob", "alice", "conv-1999"))


def test_nominations_closed_outside_nomination_phase(db, service):
    db.query(Convention).filter(Convention.id == CONVENTION_ID).update({"status": "wave1-voting"})
    db.commit()
    with pytest.raises(ValidationError, match="not accepting nominations"):
        run(service.nominate("bob", "alice", CONVENTION_ID))


def test_nominations_only_for_the_open_wave(db, service):
    # Ontario votes in wave 4
    with pytest.raises(ValidationError, match="wave 4"):
        run(service.nominate("bob", "olivia", CONVENTION_ID))
    assert db.query(Nomination).count() == 0
    assert db.query(NominationRace).count() == 0

    # the same member is nominated once their wave opens
    db.query(Convention).filter(Convention.id == CONVENTION_ID).update(
        {"status": "wave4-nominations", "current_wave": 4}
    )
    db.commit()
    result = run(service.nominate("bob", "olivia", CONVENTION_ID))
    assert db.query(NominationRace).filter(NominationRace.id == result.race_id).one().wave == 4


def test_nomination_notifies_nominee(db, service):
    run(service.nominate("bob", "alice", CONVENTION_ID, message="You'd be great"))
    notification = db.query(Notification).filter(Notification.user_id == "alice").one()
    assert notification.type == "NOMINATION"
    assert "Vancouver Centre" in notification.body


def test_nominations_grouped_by_race(db, service):
    run(service.nominate("bob", "alice", CONVENTION_ID, message="Go for it"))
    run(service.nominate("carol", "alice", CONVENTION_ID))
    groups = run(service.get_nominations_for_user(CONVENTION_ID, "alice"))
    assert len(groups) == 1
    assert groups[0].nomination_count == 2
    assert groups[0].has_accepted is False
    assert {n.nominator_id for n in groups[0].nominations} == {"bob", "carol"}
    assert groups[0].riding.id == RIDING_ID


def test_decline_removes_nominations_and_is_idempotent(db, service):
    result = run(service.nominate("bob", "alice", CONVENTION_ID))
    run(service.nominate("carol", "alice", CONVENTION_ID))
    assert run(service.decline("alice", result.race_id)) == 2
    assert service.count_nominations(result.race_id, "alice") == 0
    assert run(service.decline("alice", result.race_id)) == 0


def test_user_nomination_history(service):
    run(service.nominate("bob", "alice", CONVENTION_ID))
    run(service.nominate("bob", "carol", CONVENTION_ID))
    history = run(service.get_user_nominations("bob"))
    assert history.given_count == 2
    assert history.received_count == 0
    assert {g.nominee_id for g in history.given} == {"alice", "carol"}


def test_get_or_create_race_is_idempotent(db):
    races = RaceService(db)
    first = run(races.get_or_create_race(CONVENTION_ID, "fr-43"))
    second = run(races.get_or_create_race(CONVENTION_ID, "fr-43"))
    assert first.id == second.id
    assert first.wave == 1
    with pytest.raises(NotFoundError):
        run(races.get_or_create_race(CONVENTION_ID, "fr-404"))
