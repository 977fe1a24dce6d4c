import pytest

from civicvote.core.exceptions import ConflictError, NotFoundError, ValidationError
from civicvote.models.convention import Convention
from civicvote.models.race import NominationRace
from civicvote.schemas.convention_schemas import ConventionCreate
from civicvote.services.convention_service import ConventionService
from civicvote.services.voting_service import VotingService
from conftest import CONVENTION_ID, enter_race, run


@pytest.fixture
def service(db):
    return ConventionService(db)


def wave_races(db, wave):
    return db.query(NominationRace).filter(
        NominationRace.convention_id == CONVENTION_ID,
        NominationRace.wave == wave
    ).all()


def test_create_races_for_wave_is_idempotent(db, service):
    result = run(service.create_races_for_wave(CONVENTION_ID, 1))
    assert result.races_created == 3
    assert result.races_total == 3
    assert result.provinces == ["BC", "YT"]
    assert result.wave_name == "Pacific (BC, Yukon)"
    assert result.debug == "BC: 2 ridings, YT: 1 ridings"
    # provincial ridings are not part of the federal schedule
    assert {r.riding_id for r in wave_races(db, 1)} == {"fr-42", "fr-43", "fr-yt"}

    again = run(service.create_races_for_wave(CONVENTION_ID, 1))
    assert again.races_created == 0
    assert again.races_total == 3
    assert db.query(NominationRace).count() == 3


def test_wave_races_keep_lazily_created_ones(db, service):
    race_id = enter_race(db, "alice", ["bob"])
    result = run(service.create_races_for_wave(CONVENTION_ID, 1))
    assert result.races_created == 2
    assert race_id in {r.id for r in wave_races(db, 1)}


def test_invalid_wave(service):
    result = run(service.create_races_for_wave(CONVENTION_ID, 9))
    assert result.races_created == 0
    assert result.debug == "Invalid wave"


def test_unseeded_wave_reports_diagnostic(db, service):
    result = run(service.create_races_for_wave(CONVENTION_ID, 3))
    assert result.races_created == 0
    assert result.debug == "SK: 0 ridings, MB: 0 ridings, NU: 0 ridings"
    assert "Seed the location data" in result.message
    assert db.query(NominationRace).count() == 0


def test_create_races_for_unknown_convention(service):
    with pytest.raises(NotFoundError):
        run(service.create_races_for_wave("conv-1999", 1))


def test_set_phase_validates_and_creates_races(db, service):
    with pytest.raises(ValidationError, match="Must be one of"):
        run(service.set_phase(CONVENTION_ID, "wave9-voting"))

    result = run(service.set_phase(CONVENTION_ID, "wave4-nominations"))
    assert result.previous_status == "wave1-nominations"
    assert result.new_status == "wave4-nominations"
    assert result.current_wave == 4
    assert result.races_created == 1
    assert [r.riding_id for r in wave_races(db, 4)] == ["fr-on-1"]

    result = run(service.set_phase(CONVENTION_ID, "upcoming"))
    assert result.current_wave == 0
    assert result.races_created == 0


def test_advance_walks_waves(db, service):
    db.query(Convention).filter(Convention.id == CONVENTION_ID).update(
        {"status": "upcoming", "current_wave": 0}
    )
    db.commit()

    first = run(service.advance_phase(CONVENTION_ID))
    assert first.new_status == "wave1-nominations"
    assert first.races_created == 3
    assert first.wave_name == "Pacific (BC, Yukon)"

    assert run(service.advance_phase(CONVENTION_ID)).new_status == "wave1-voting"
    second = run(service.advance_phase(CONVENTION_ID))
    assert second.new_status == "wave2-nominations"
    assert second.current_wave == 2
    assert second.races_created == 0

    run(service.set_phase(CONVENTION_ID, "wave6-voting"))
    assert run(service.advance_phase(CONVENTION_ID)).new_status == "completed"
    with pytest.raises(ValidationError, match="already completed"):
        run(service.advance_phase(CONVENTION_ID))


def test_create_races_for_current_wave(db, service):
    result = run(service.create_races_for_current_wave(CONVENTION_ID))
    assert result.wave == 1
    assert result.races_created == 3

    db.query(Convention).filter(Convention.id == CONVENTION_ID).update({"current_wave": 0})
    db.commit()
    with pytest.raises(ValidationError):
        run(service.create_races_for_current_wave(CONVENTION_ID))


def test_create_and_list_conventions(db, service):
    created = run(service.create_convention(ConventionCreate(name="Convention 2030", year=2030)))
    assert created.id == "conv-2030"
    assert created.status == "upcoming"
    assert created.current_wave == 0
    assert len(created.waves) == 6

    with pytest.raises(ConflictError):
        run(service.create_convention(ConventionCreate(name="Again", year=2030)))
    with pytest.raises(NotFoundError):
        run(service.create_convention(ConventionCreate(name="Elsewhere", year=2031, country_id="xx")))

    listed = run(service.list_conventions())
    assert [c.id for c in listed] == ["conv-2030", CONVENTION_ID]


def test_convention_detail(db, service):
    enter_race(db, "alice", ["bob"])
    detail = run(service.get_convention(CONVENTION_ID))
    assert detail.country.id == "ca"
    assert detail.race_count == 1
    assert len(detail.races) == 1
    assert detail.races[0].candidates[0].id == "alice"
    assert detail.races[0].province_name == "British Columbia"


def test_stats(db, service):
    race_id = enter_race(db, "alice", ["bob", "carol"])
    enter_race(db, "bob", ["carol"])
    run(service.create_races_for_wave(CONVENTION_ID, 1))
    voting = VotingService(db)
    run(voting.start_voting(race_id))
    run(voting.cast_vote("dave", race_id, "alice"))

    stats = run(service.get_convention_stats(CONVENTION_ID))
    assert stats.total_races == 3
    assert stats.voting_races == 1
    assert stats.open_races == 2
    assert stats.completed_races == 0
    assert stats.total_candidates == 2
    assert stats.total_nominations == 3
    assert stats.total_votes == 1
