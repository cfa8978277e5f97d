"""Tests for the Alembic schema migrations."""

import importlib.util
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.exc import IntegrityError

VERSIONS = Path(__file__).resolve().parents[2] / "db" / "alembic" / "versions"

INSERT_RESERVATION = sa.text(
    "INSERT INTO reservations (id, resource_id, starts_at, ends_at, status, reference, created_at) "
    "VALUES (:id, 'car-1', '2024-05-01 00:00:00', '2024-05-02 00:00:00', :status, :reference, "
    "'2024-04-01 12:00:00')"
)


def _load_revision(filename: str):
    module_spec = importlib.util.spec_from_file_location(filename.removesuffix(".py"), VERSIONS / filename)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrated_connection():
    """SQLite connection with the initial booking schema applied."""
    engine = sa.create_engine("sqlite://")
    revision = _load_revision("0001_20241019_0900_0001_initial_booking_schema.py")

    with engine.connect() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            revision.upgrade()
        conn.execute(sa.text(
            "INSERT INTO resources (id, kind, name, granularity, weekdays, dates, slot_templates, is_available) "
            "VALUES ('car-1', 'car', 'Toyota Corolla', 'day', '[]', '[]', '[]', 1)"
        ))
        yield conn

    engine.dispose()


def test_cancelled_interval_can_be_rebooked(migrated_connection):
    """Test that the active interval index ignores cancelled rows on SQLite."""
    migrated_connection.execute(
        INSERT_RESERVATION, {"id": "a" * 32, "status": "cancelled", "reference": "CAR-000001-GONE"}
    )
    migrated_connection.execute(
        INSERT_RESERVATION, {"id": "b" * 32, "status": "pending", "reference": "CAR-000002-LIVE"}
    )

    with pytest.raises(IntegrityError):
        migrated_connection.execute(
            INSERT_RESERVATION, {"id": "c" * 32, "status": "confirmed", "reference": "CAR-000003-DUPE"}
        )


def test_resource_created_at_defaults_to_now(migrated_connection):
    """Test that the resources table fills created_at on insert."""
    created_at = migrated_connection.execute(
        sa.text("SELECT created_at FROM resources WHERE id = 'car-1'")
    ).scalar_one()

    assert created_at is not None
