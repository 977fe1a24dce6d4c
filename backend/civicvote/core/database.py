"""
Database configuration
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from civicvote.core.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=settings.SQL_ECHO  # True logs every SQL statement
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Yield a database session for one request"""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def insert_ignore(db, model, values: dict, index_elements: list) -> int:
    """INSERT that silently skips rows clashing with a unique index.

    Returns the number of rows actually inserted (0 or 1).
    """
    dialect = db.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert
        stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
        return db.execute(stmt).rowcount or 0

    from sqlalchemy.exc import IntegrityError
    try:
        with db.begin_nested():
            db.add(model(**values))
        return 1
    except IntegrityError:
        return 0

def import_models():
    """Register every model on Base.metadata"""
    from civicvote.models.location import Location
    from civicvote.models.user import User
    from civicvote.models.idea import Idea, IdeaSupport
    from civicvote.models.endorsement import Endorsement
    from civicvote.models.convention import Convention
    from civicvote.models.race import NominationRace
    from civicvote.models.nomination import Nomination
    from civicvote.models.candidacy import Candidacy
    from civicvote.models.round_model import VotingRound
    from civicvote.models.ballot import Ballot
    from civicvote.models.elimination import Elimination
    from civicvote.models.notification import Notification

async def init_db(bind=None):
    """Create all tables"""
    import_models()
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database initialised (%s)", (bind or engine).url)
