#!/usr/bin/env python3
"""Setup script for the booking availability engine database."""

import asyncio
import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402

from booking_engine.core.database import async_session_factory, close_db  # noqa: E402
from booking_engine.core.exceptions import ConflictError  # noqa: E402
from booking_engine.engine.domain import Granularity, Resource, ResourceKind  # noqa: E402
from booking_engine.services.resource_catalog import SqlAlchemyResourceCatalog  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RESOURCES = [
    Resource(
        id="car-corolla-1",
        kind=ResourceKind.CAR,
        granularity=Granularity.DAY,
        name="Toyota Corolla",
    ),
    Resource(
        id="tour-old-town",
        kind=ResourceKind.TOUR,
        granularity=Granularity.SLOT,
        name="Old Town Walking Tour",
        weekdays=frozenset({1, 3, 5, 6}),
        slot_templates=("09:00", "13:00", "17:00"),
    ),
]


def migrate_database() -> None:
    """Apply all Alembic migrations."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data() -> None:
    """Register a sample car and tour, skipping ones that already exist."""
    catalog = SqlAlchemyResourceCatalog(async_session_factory)

    for resource in SAMPLE_RESOURCES:
        try:
            await catalog.create_resource(resource)
        except ConflictError:
            logger.info("Sample resource already exists, skipping: %s", resource.id)

    await close_db()
    logger.info("Sample data created successfully!")


def main() -> None:
    """Main setup function."""
    logger.info("Starting booking engine setup...")

    migrate_database()
    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn booking_engine.main:app --reload")


if __name__ == "__main__":
    main()
