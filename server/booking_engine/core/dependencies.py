"""FastAPI dependencies."""

from fastapi import Depends, Request

from ..engine.coordinator import BookingCoordinator


def get_coordinator(request: Request) -> BookingCoordinator:
    """
    Booking coordinator created during application startup.

    Returns:
        BookingCoordinator: The process-wide coordinator stored on ``app.state``
    """
    return request.app.state.coordinator


CoordinatorDependency = Depends(get_coordinator)
