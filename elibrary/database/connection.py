from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from elibrary import config


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # Sync route handlers run in a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=False, connect_args=connect_args)


engine = make_engine(config.DATABASE_URL)

# Base class
Base = declarative_base()

# DB session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create any missing tables."""
    from elibrary.models import all_model  # noqa: F401  (registers tables)

    Base.metadata.create_all(bind=bind or engine)
