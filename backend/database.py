"""
Database Configuration Module

Engine, session factory and declarative Base for the Ventura backend.
PostgreSQL in production; any SQLAlchemy URL (SQLite in tests) is accepted
through settings.DATABASE_URL.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import settings

# SQLite connections are shared between the request thread, the scheduler and the test client
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

# Nothing is flushed implicitly: crud functions flush before reading back ids or sums
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency yielding one session per request.

    The session is always closed afterwards; committing is left to the crud layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
