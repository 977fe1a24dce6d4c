import asyncio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from civicvote.core.database import Base, get_db, import_models
from civicvote.core.security import create_access_token
from civicvote.models.convention import Convention
from civicvote.models.location import Location
from civicvote.models.user import User
from civicvote.services.candidacy_service import CandidacyService
from civicvote.services.nomination_service import NominationService

CONVENTION_ID = "conv-2026"
RIDING_ID = "fr-42"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def engine():
    import_models()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed(session)
    yield session
    session.close()


def add_user(db, user_id, riding_id=RIDING_ID, verified=True, is_admin=False, name=None):
    user = User(
        id=user_id,
        name=name or user_id.capitalize(),
        email=f"{user_id}@example.org",
        riding_id=riding_id,
        verified=verified,
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    return user


def seed(db):
    db.add_all([
        Location(id="ca", name="Canada", kind="country", code="CA"),
        Location(id="bc", name="British Columbia", kind="province", code="BC", parent_id="ca"),
        Location(id="yt", name="Yukon", kind="province", code="YT", parent_id="ca"),
        Location(id="on", name="Ontario", kind="province", code="ON", parent_id="ca"),
        Location(id="ab", name="Alberta", kind="province", code="AB", parent_id="ca"),
        Location(id=RIDING_ID, name="Vancouver Centre", kind="federal_riding", parent_id="bc"),
        Location(id="fr-43", name="Burnaby North", kind="federal_riding", parent_id="bc"),
        Location(id="fr-yt", name="Yukon", kind="federal_riding", parent_id="yt"),
        Location(id="fr-on-1", name="Ottawa Centre", kind="federal_riding", parent_id="on"),
        Location(id="pr-bc-1", name="Vancouver-False Creek", kind="provincial_riding", parent_id="bc"),
    ])
    db.add(Convention(
        id=CONVENTION_ID,
        name="Convention 2026",
        year=2026,
        status="wave1-nominations",
        current_wave=1,
        country_id="ca",
    ))
    db.commit()
    for user_id in ("alice", "bob", "carol", "dave", "erin"):
        add_user(db, user_id)
    add_user(db, "frank", riding_id="fr-43")
    add_user(db, "olivia", riding_id="fr-on-1")
    add_user(db, "nomad", riding_id=None)
    add_user(db, "uma", verified=False)
    add_user(db, "admin", is_admin=True)


def enter_race(db, nominee_id, nominator_ids, convention_id=CONVENTION_ID):
    """Nominate a member from each nominator and accept; returns the race id"""
    nominations = NominationService(db)
    result = None
    for nominator_id in nominator_ids:
        result = run(nominations.nominate(nominator_id, nominee_id, convention_id))
    run(CandidacyService(db).accept(nominee_id, result.race_id, convention_id))
    return result.race_id


@pytest.fixture
def client(db, session_factory):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id, role="member", verified=True):
    token = create_access_token(user_id, role=role, verified=verified)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth("admin", role="admin")
