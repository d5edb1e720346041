from sqlalchemy import create_engine               # engine factory
from sqlalchemy.orm import declarative_base, sessionmaker

from config.settings import settings

# SQLite connections are shared across the threadpool FastAPI runs sync routes on
_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# base class for every declarative model
Base = declarative_base()


def get_db():
    """Request-scoped session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # models must be imported so their tables register on Base.metadata
    from models import attendance, courses, grades, students  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
