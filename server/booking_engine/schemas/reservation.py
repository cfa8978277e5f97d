"""Reservation-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ..engine.domain import CancellationReason, ReservationStatus


class RequestBookingRequest(BaseModel):
    """Request schema for booking a resource interval."""

    resource_id: str = Field(..., min_length=1, description="Resource to book")
    start: datetime = Field(..., description="Interval start, local time without offset")
    end: datetime = Field(..., description="Interval end (exclusive), local time without offset")
    customer_ref: str | None = Field(None, max_length=128, description="Customer reference")


class ReservationIdRequest(BaseModel):
    """Request schema for operations addressing one reservation."""

    reservation_id: UUID = Field(..., description="Reservation to act on")


class ListReservationsRequest(BaseModel):
    """Request schema for a resource's booking calendar or a customer's bookings."""

    resource_id: str | None = Field(None, min_length=1, description="Resource whose reservations to list")
    customer_ref: str | None = Field(
        None, min_length=1, max_length=128, description="Only include this customer's reservations"
    )
    statuses: list[ReservationStatus] | None = Field(None, description="Only include these statuses")

    @model_validator(mode="after")
    def require_resource_or_customer(self) -> "ListReservationsRequest":
        if self.resource_id is None and self.customer_ref is None:
            raise ValueError("Either resource_id or customer_ref is required")
        return self


class ExpireHoldsResponse(BaseModel):
    """Response schema for a hold expiry run."""

    expired_count: int = Field(..., ge=0, description="Pending reservations cancelled by this run")


class ReservationEvent(BaseModel):
    """History entry of a reservation."""

    action: str = Field(..., description="What happened")
    at: datetime = Field(..., description="When it happened")
    note: str | None = Field(None, description="Free-form note")


class Reservation(BaseModel):
    """Reservation response schema."""

    id: UUID = Field(..., description="Unique reservation ID")
    reference: str = Field(..., description="Human-readable booking reference")
    resource_id: str = Field(..., description="Booked resource")
    start: datetime = Field(..., description="Interval start")
    end: datetime = Field(..., description="Interval end (exclusive)")
    status: ReservationStatus = Field(..., description="Reservation status")
    customer_ref: str | None = Field(None, description="Customer reference")
    cancellation_reason: CancellationReason | None = Field(None, description="Why it was cancelled")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    hold_expires_at: datetime | None = Field(None, description="Deadline for confirming a pending reservation")
    events: list[ReservationEvent] = Field(default_factory=list, description="Status history")


class ReservationList(BaseModel):
    """Response schema for a resource's reservations."""

    items: list[Reservation] = Field(..., description="Reservations ordered by interval")
