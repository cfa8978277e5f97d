"""Test configuration and fixtures."""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from booking_engine.core.database import Base, build_engine, build_session_factory  # noqa: E402
from booking_engine.engine.coordinator import BookingCoordinator  # noqa: E402
from booking_engine.engine.domain import Granularity, Resource, ResourceKind  # noqa: E402
from booking_engine.engine.memory import InMemoryReservationStore, InMemoryResourceCatalog  # noqa: E402
from booking_engine.models import *  # noqa: F403,E402 - Import all models

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

HOLD_DURATION = timedelta(minutes=15)

# 2024-05-01 is a Wednesday
MAY_1 = date(2024, 5, 1)


class FakeClock:
    """Manually advanced clock for the coordinator."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_car(resource_id: str = "car-1", **overrides) -> Resource:
    """Day-granularity car available every day."""
    return Resource(
        id=resource_id,
        kind=ResourceKind.CAR,
        granularity=Granularity.DAY,
        name=overrides.pop("name", "Toyota Corolla"),
        **overrides,
    )


def make_tour(resource_id: str = "tour-1", **overrides) -> Resource:
    """Slot-granularity tour running Tuesday, Thursday and Saturday."""
    return Resource(
        id=resource_id,
        kind=ResourceKind.TOUR,
        granularity=Granularity.SLOT,
        name=overrides.pop("name", "Old Town Walk"),
        weekdays=overrides.pop("weekdays", frozenset({1, 3, 5})),
        slot_templates=overrides.pop("slot_templates", ("09:00", "13:00", "17:00")),
        **overrides,
    )


@pytest.fixture
def clock():
    """Clock frozen at noon on 2024-04-01."""
    return FakeClock(datetime(2024, 4, 1, 12, 0))


@pytest.fixture
def car():
    return make_car()


@pytest.fixture
def tour():
    return make_tour()


@pytest.fixture
def catalog(car, tour):
    return InMemoryResourceCatalog([car, tour])


@pytest.fixture
def store():
    return InMemoryReservationStore()


@pytest.fixture
def coordinator(catalog, store, clock):
    """Coordinator on the in-memory adapters with a 15 minute hold."""
    return BookingCoordinator(
        catalog=catalog,
        store=store,
        hold_duration=HOLD_DURATION,
        clock=clock,
        lock_timeout_seconds=0.5,
    )


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    """Session factory bound to the test database."""
    return build_session_factory(test_engine)


@pytest_asyncio.fixture(scope="function")
async def test_app(coordinator):
    """Create a test FastAPI application around the in-memory coordinator."""
    from fastapi import FastAPI

    from booking_engine.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
    )
    from booking_engine.core.middleware import setup_middleware
    from booking_engine.routers import availability, health, metrics, reservation, resource

    # Simplified test app without lifespan
    app = FastAPI(title="Booking Availability Engine (Test)", version="1.0.0-test")
    app.state.coordinator = coordinator

    setup_middleware(app, enable_logging=True)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(resource.router)
    app.include_router(availability.router)
    app.include_router(reservation.router)
    app.include_router(metrics.router)

    yield app


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_car_data():
    """Sample car resource payload."""
    return {
        "id": "car-42",
        "kind": "car",
        "name": "Volkswagen Golf",
        "granularity": "day",
    }


@pytest.fixture
def sample_tour_data():
    """Sample tour resource payload."""
    return {
        "id": "tour-42",
        "kind": "tour",
        "name": "Harbour Kayak Tour",
        "granularity": "slot",
        "weekdays": [5, 6],
        "dates": ["2024-05-01"],
        "slot_templates": ["10:00", "14:00"],
    }


@pytest.fixture
def car_factory():
    """Factory for extra car resources."""
    return make_car


@pytest.fixture
def tour_factory():
    """Factory for extra tour resources."""
    return make_tour
