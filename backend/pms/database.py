"""
Database configuration - SQLAlchemy persistence layer
The engine never touches sessions directly; it goes through the stores in
pms.services.
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

from pms.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

_connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency: yield a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create tables"""
    from pms.models import ontology  # noqa
    target = bind or engine
    Base.metadata.create_all(bind=target)

    # WAL mode for concurrent readers during sweeps
    if target.dialect.name == "sqlite" and target.url.database not in (None, "", ":memory:"):
        with target.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA synchronous=NORMAL"))
            conn.commit()
