"""Availability router for listing bookable dates and slots."""

import logging

from fastapi import APIRouter

from ..core.dependencies import CoordinatorDependency
from ..engine.coordinator import BookingCoordinator
from ..schemas.availability import AvailabilityResponse, BookableOption, CheckAvailabilityRequest
from ..schemas.common import PROBLEM_RESPONSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/availability", tags=["availability"], responses=PROBLEM_RESPONSES)


@router.post("/check", response_model=AvailabilityResponse)
async def check_availability(
    request: CheckAvailabilityRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> AvailabilityResponse:
    """
    List the bookable options of a resource over ``[range_start, range_end)``.

    Options are ordered by date, then by slot template order. Dates that
    already carry an active reservation are reported in ``booked_dates``.
    """
    options, booked = await coordinator.availability_snapshot(
        request.resource_id, request.range_start, request.range_end
    )

    logger.debug(
        "Availability checked",
        extra={
            "resource_id": request.resource_id,
            "range_start": request.range_start.isoformat(),
            "range_end": request.range_end.isoformat(),
            "options": len(options),
        }
    )

    return AvailabilityResponse(
        resource_id=request.resource_id,
        range_start=request.range_start,
        range_end=request.range_end,
        options=[
            BookableOption(
                day=option.day,
                slot=option.slot,
                start=option.interval.start,
                end=option.interval.end,
            )
            for option in options
        ],
        booked_dates=booked,
    )
