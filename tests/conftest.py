"""
Pytest fixtures for JustFuel tests.
"""

import os

# Set DATABASE_URL BEFORE importing justfuel to use SQLite for tests
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from justfuel.models import Base  # noqa: E402

# Fixed "today" so date horizon checks are deterministic
TODAY = date(2025, 6, 30)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Provide a database session for tests."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def service(db_session):
    """FillupService bound to the test session with a fixed date."""
    from justfuel.services import FillupService

    return FillupService(db_session, today=TODAY)


@pytest.fixture
def odometer_vehicle():
    """Unsaved odometer-mode vehicle starting at 0 km."""
    from tests.factories import VehicleFactory

    return VehicleFactory.build()


@pytest.fixture
def distance_vehicle():
    """Unsaved distance-mode vehicle starting at 1000 km."""
    from tests.factories import VehicleFactory

    return VehicleFactory.build(mileage_input_preference='distance', initial_odometer=1000)
