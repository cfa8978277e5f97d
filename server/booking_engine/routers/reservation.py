"""Reservation router for the booking lifecycle."""

import logging

from fastapi import APIRouter, HTTPException

from ..core.dependencies import CoordinatorDependency
from ..core.exceptions import ProblemDetailsException
from ..engine import domain
from ..engine.coordinator import BookingCoordinator
from ..engine.interval import Interval
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.reservation import (
    ExpireHoldsResponse,
    ListReservationsRequest,
    RequestBookingRequest,
    Reservation,
    ReservationEvent,
    ReservationIdRequest,
    ReservationList,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reservation", tags=["reservation"], responses=PROBLEM_RESPONSES)


def _convert_reservation_to_schema(
    reservation: domain.Reservation,
    coordinator: BookingCoordinator,
) -> Reservation:
    """Convert domain reservation to schema."""
    hold_expires_at = None
    if reservation.status == domain.ReservationStatus.PENDING:
        hold_expires_at = coordinator.hold_expires_at(reservation)

    return Reservation(
        id=reservation.id,
        reference=reservation.reference,
        resource_id=reservation.resource_id,
        start=reservation.interval.start,
        end=reservation.interval.end,
        status=reservation.status,
        customer_ref=reservation.customer_ref,
        cancellation_reason=reservation.cancellation_reason,
        created_at=reservation.created_at,
        hold_expires_at=hold_expires_at,
        events=[
            ReservationEvent(action=event.action, at=event.at, note=event.note)
            for event in reservation.events
        ],
    )


@router.post("/request", response_model=Reservation)
async def request_booking(
    request: RequestBookingRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Reservation:
    """
    Request a booking of ``[start, end)`` on a resource.

    Creates a pending reservation that must be confirmed before its hold
    lapses. Fails with 409 if the interval overlaps an active reservation.
    """
    interval = Interval(request.start, request.end)

    try:
        reservation = await coordinator.request_booking(
            request.resource_id,
            interval,
            customer_ref=request.customer_ref,
        )
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in booking request",
            extra={
                "resource_id": request.resource_id,
                "customer_ref": request.customer_ref,
                "error": str(e),
                **interval.to_dict(),
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e

    return _convert_reservation_to_schema(reservation, coordinator)


@router.post("/confirm", response_model=Reservation)
async def confirm_booking(
    request: ReservationIdRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Reservation:
    """Confirm a pending reservation before its hold lapses."""
    reservation = await coordinator.confirm_booking(request.reservation_id)
    return _convert_reservation_to_schema(reservation, coordinator)


@router.post("/cancel", response_model=Reservation)
async def cancel_booking(
    request: ReservationIdRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Reservation:
    """
    Cancel a pending or confirmed reservation.

    Cancelling an already-cancelled reservation returns it unchanged.
    """
    reservation = await coordinator.cancel_booking(request.reservation_id)
    return _convert_reservation_to_schema(reservation, coordinator)


@router.post("/get", response_model=Reservation)
async def get_reservation(
    request: ReservationIdRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Reservation:
    """Get a reservation and its history by ID."""
    reservation = await coordinator.get_reservation(request.reservation_id)
    return _convert_reservation_to_schema(reservation, coordinator)


@router.post("/list", response_model=ReservationList)
async def list_reservations(
    request: ListReservationsRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> ReservationList:
    """
    List reservations of a resource ordered by interval, or of a customer ordered by start.

    With both ``resource_id`` and ``customer_ref`` the resource's calendar is
    narrowed to that customer.
    """
    if request.resource_id is not None:
        reservations = await coordinator.list_reservations(
            request.resource_id, request.statuses, customer_ref=request.customer_ref
        )
    else:
        reservations = await coordinator.list_customer_reservations(request.customer_ref, request.statuses)
    return ReservationList(
        items=[_convert_reservation_to_schema(reservation, coordinator) for reservation in reservations]
    )


@router.post("/expire", response_model=ExpireHoldsResponse)
async def expire_holds(
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> ExpireHoldsResponse:
    """Run hold expiry now instead of waiting for the background worker."""
    expired_count = await coordinator.expire_pending_holds()
    logger.info("Manual hold expiry run", extra={"expired_count": expired_count})
    return ExpireHoldsResponse(expired_count=expired_count)
