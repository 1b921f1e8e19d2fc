"""
Test configuration and shared fixtures for the salon calendar test suite.

Database tests run against in-memory SQLite; each test gets a fresh schema.
"""

from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from salon_calendar.core.database import Base

# Import all models to ensure they're registered with SQLAlchemy
import salon_calendar.models  # noqa: F401
from salon_calendar.services.appointment_service import AppointmentService
from salon_calendar.services.appointment_store import InMemoryAppointmentStore
from salon_calendar.services.schedule_service import (
    ScheduleRepository,
    ScheduleResolver,
    build_default_repository,
)

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def db_engine():
    """
    Create an in-memory database engine with all tables.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session bound to the test engine."""
    TestingSession = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.close()


@pytest.fixture
def salon_repository() -> ScheduleRepository:
    """Repository seeded with the salon's real schedule tables."""
    return build_default_repository()


@pytest.fixture
def salon_resolver(salon_repository) -> ScheduleResolver:
    return ScheduleResolver(salon_repository)


@pytest.fixture
def split_shift_resolver() -> ScheduleResolver:
    """
    Resolver for employee "A" working a split shift on Tuesdays
    (10:00-16:00 and 19:00-21:00) and 09:00-12:00 on Fridays.
    """
    repository = ScheduleRepository.from_dict([
        {
            "id": "A",
            "name": "Employee A",
            "schedule": {
                2: [["10:00", "16:00"], ["19:00", "21:00"]],
                5: [["09:00", "12:00"]],
            },
        },
        {
            "id": "B",
            "name": "Employee B",
            "schedule": {2: [["13:00", "21:00"]]},
        },
    ])
    return ScheduleResolver(repository)


@pytest.fixture
def memory_store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def appointment_service(memory_store, split_shift_resolver) -> AppointmentService:
    """AppointmentService over an empty in-memory store and the split-shift resolver."""
    return AppointmentService(memory_store, split_shift_resolver)


@pytest.fixture
def sample_appointment_data():
    """Booking form data for a 30-minute Tuesday appointment with employee A."""
    return {
        "client": "Maria Papadopoulou",
        "phone": "691 234 5678",
        "date": "2025-10-07",
        "employee": "A",
        "time": "10:00",
        "duration": 30,
        "description": "Haircut",
        "price": 25.0,
    }
