"""Health check router."""

import logging

from fastapi import APIRouter

from ..core.dependencies import CoordinatorDependency
from ..engine.coordinator import BookingCoordinator, utcnow
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping(coordinator: BookingCoordinator = CoordinatorDependency) -> HealthResponse:
    """
    Health check endpoint.

    Returns current service status, timestamp and the size of the availability index.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        timestamp=utcnow(),
        active_intervals=coordinator.index.size(),
    )

    logger.debug(
        "Health check requested",
        extra={"active_intervals": response_data.active_intervals}
    )

    return response_data
