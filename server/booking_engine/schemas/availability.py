"""Availability-related Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class CheckAvailabilityRequest(BaseModel):
    """Request schema for listing bookable options of a resource."""

    resource_id: str = Field(..., min_length=1, description="Resource to check")
    range_start: date = Field(..., description="First date of the range")
    range_end: date = Field(..., description="Date after the last date of the range")


class BookableOption(BaseModel):
    """A date, or a date and slot, that can currently be booked."""

    day: date = Field(..., description="Calendar date")
    slot: str | None = Field(None, description="Slot label for slot resources")
    start: datetime = Field(..., description="Start of the interval the option occupies")
    end: datetime = Field(..., description="End of the interval the option occupies (exclusive)")


class AvailabilityResponse(BaseModel):
    """Response schema for availability checks."""

    resource_id: str = Field(..., description="Checked resource")
    range_start: date = Field(..., description="First date of the range")
    range_end: date = Field(..., description="Date after the last date of the range")
    options: list[BookableOption] = Field(..., description="Bookable options in display order")
    booked_dates: list[date] = Field(..., description="Dates touched by active reservations")
