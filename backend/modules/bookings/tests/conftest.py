# backend/modules/bookings/tests/conftest.py

import pytest
from typing import Generator
from datetime import time
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from core.config import Settings
from core.database import Base, get_db
from core.locks import AllocationLockManager
from core.memory_cache import TTLCache
from ..services import (
    AllocationService,
    AvailabilityCache,
    AvailabilityService,
    SQLAlchemyAvailabilityRepository,
)
from .factories import BookingWindowFactory, TableFactory, VenueFactory, bind_factories


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    bind_factories(session)

    yield session

    session.close()
    bind_factories(None)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        redis_url=None,
        availability_cache_enabled=True,
        default_service_open="10:00",
        default_service_close="22:00",
    )


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(settings, clock) -> AvailabilityCache:
    backend = TTLCache(
        max_size=settings.availability_cache_max_size,
        ttl_seconds=settings.time_slot_ttl_seconds,
        clock=clock,
    )
    return AvailabilityCache(settings, backend=backend)


@pytest.fixture
def repository(db_session, settings) -> SQLAlchemyAvailabilityRepository:
    return SQLAlchemyAvailabilityRepository(db_session, settings)


@pytest.fixture
def availability_service(repository, settings) -> AvailabilityService:
    """Uncached service so every call reads the database."""
    return AvailabilityService(repository, settings=settings)


@pytest.fixture
def allocation_service(repository, settings, cache) -> AllocationService:
    return AllocationService(
        repository,
        lock_manager=AllocationLockManager(timeout_seconds=2),
        cache=cache,
        settings=settings,
    )


@pytest.fixture
def venue(db_session):
    return VenueFactory()


@pytest.fixture
def dinner_window(venue):
    """Every day, 17:00 to 21:00 last seating."""
    return BookingWindowFactory(venue_id=venue.id, start_time=time(17, 0), end_time=time(21, 0))


@pytest.fixture
def four_top(venue):
    return TableFactory(venue=venue, label="T4", seats=4)


@pytest.fixture
def override_get_db(db_session: Session):
    """Override the get_db dependency for testing."""
    def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
def client(override_get_db):
    """Create a test client."""
    from app.main import app

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
