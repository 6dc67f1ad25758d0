"""
Database connection and session management.
Uses SQLAlchemy; SQLite by default, MySQL/Postgres via DATABASE_URL.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.config import settings
from storefront.logger import get_logger

logger = get_logger("database")

DATABASE_URL = settings.database_url

# Base class for all our database models (must be defined before engine)
Base = declarative_base()


def make_engine(url: str):
    """Create an engine; SQLite needs the same-thread check disabled for FastAPI."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    # pool_pre_ping ensures connections are alive before using them
    return create_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=20)


engine = make_engine(DATABASE_URL)
logger.info("Database engine configured for %s", engine.url.render_as_string(hide_password=True))

# Session is the gateway to interact with the database
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency function that provides a database session.
    Automatically closes the session after the request is done.

    Usage in FastAPI:
        @router.post("/endpoint")
        def my_endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
