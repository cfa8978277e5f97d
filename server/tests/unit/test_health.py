"""Tests for health endpoints and the application lifespan."""

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from booking_engine.engine.interval import Interval


@pytest.mark.asyncio
async def test_health_ping(test_client, coordinator):
    """Test the health ping reports the availability index size."""
    await coordinator.request_booking("car-1", Interval.from_dates(date(2024, 5, 1), date(2024, 5, 2)))

    response = await test_client.post("/v1/health/ping")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["active_intervals"] == 1
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_application_lifespan():
    """Test that startup builds the coordinator and starts the workers."""
    from booking_engine.main import create_app

    app = create_app()

    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            health = await client.get("/health")
            ready = await client.get("/ready")
            info = await client.get("/info")

            created = await client.post(
                "/v1/resource/create",
                json={"id": "car-7", "kind": "car", "name": "Fiat 500", "granularity": "day"},
            )

        assert app.state.workers.get_worker_status() == {"hold_expiry": True}

    assert health.json()["status"] == "healthy"
    assert ready.json()["status"] == "ready"
    assert ready.json()["checks"]["workers"] == {"hold_expiry": True}
    assert info.json()["store_backend"] == "memory"
    assert created.status_code == 200
    assert app.state.workers.get_worker_status() == {"hold_expiry": False}
