"""
Shared fixtures: an in-memory SQLite database, a pinned clock and a FastAPI
test client wired to both.
"""

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medication_service import models, schemas
from medication_service.clock import FixedClock, get_clock
from medication_service.database import Base, get_db
from medication_service.main import app
from medication_service.services import regimens

# Monday
TODAY = date(2026, 3, 2)
USER_ID = 1


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 30))


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_regimen(db):
    """Factory creating (and materializing) a regimen for a user."""
    def _make(user_id=USER_ID, **overrides):
        fields = dict(
            name="Amoxicillin",
            dosage="1 tablet",
            start_date=TODAY,
            end_date=date(2026, 3, 6),
            daily_times=["08:00", "20:00"],
            tablets_remaining=20,
            doses_per_day=2,
        )
        fields.update(overrides)
        return regimens.create_regimen(db, user_id, schemas.RegimenCreate(**fields))
    return _make


@pytest.fixture
def count_logs(db):
    """Counts stored dose logs, optionally for one regimen."""
    def _count(regimen_id=None):
        query = db.query(models.DoseLog)
        if regimen_id is not None:
            query = query.filter(models.DoseLog.regimen_id == regimen_id)
        return query.count()
    return _count
