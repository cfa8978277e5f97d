"""Construction of the process-wide booking coordinator."""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import Settings
from ..engine.coordinator import BookingCoordinator
from ..engine.memory import InMemoryReservationStore, InMemoryResourceCatalog
from .reservation_store import SqlAlchemyReservationStore
from .resource_catalog import SqlAlchemyResourceCatalog


def build_coordinator(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> BookingCoordinator:
    """Wire a coordinator to the catalog and store selected by ``store_backend``."""
    if settings.store_backend == "memory":
        catalog = InMemoryResourceCatalog()
        store = InMemoryReservationStore()
    elif settings.store_backend == "database":
        if session_factory is None:
            raise ValueError("The database store backend needs a session factory")
        catalog = SqlAlchemyResourceCatalog(session_factory)
        store = SqlAlchemyReservationStore(session_factory)
    else:
        raise ValueError(f"Unknown store backend: {settings.store_backend}")

    return BookingCoordinator(
        catalog=catalog,
        store=store,
        hold_duration=timedelta(seconds=settings.hold_duration_seconds),
        lock_timeout_seconds=settings.lock_timeout_seconds,
        max_range_days=settings.max_availability_range_days,
    )
