"""
Handles database connection setup and session management.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLite connections are shared across FastAPI's worker threads
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# Create the SQLAlchemy engine, which manages connections to the database
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

# Create a session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative class definitions (our ORM models)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency to create and manage database sessions per request.

    Services commit or roll back themselves; this dependency only guarantees
    the session is closed once the request is done.

    Yields:
        Session: A new SQLAlchemy database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
