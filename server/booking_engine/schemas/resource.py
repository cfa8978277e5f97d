"""Resource catalog Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine.domain import Granularity, ResourceKind, parse_slot_label


class CreateResourceRequest(BaseModel):
    """Request schema for registering a bookable resource."""

    id: str | None = Field(None, min_length=1, max_length=64, description="Resource ID; generated when omitted")
    kind: ResourceKind = Field(..., description="Resource kind: car or tour")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    granularity: Granularity = Field(..., description="Booking granularity: day or slot")
    weekdays: list[int] = Field(
        default_factory=lambda: list(range(7)),
        description="Operating weekdays, 0 = Monday through 6 = Sunday"
    )
    dates: list[date] = Field(default_factory=list, description="Extra operating dates")
    slot_templates: list[str] = Field(default_factory=list, description="Ordered HH:MM slot start times")
    is_available: bool = Field(True, description="Whether the resource currently accepts bookings")

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v: list[int]) -> list[int]:
        """Validate weekday numbers."""
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Weekdays must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(v))

    @field_validator("slot_templates")
    @classmethod
    def validate_slot_templates(cls, v: list[str]) -> list[str]:
        """Validate slot labels are HH:MM and strictly ascending."""
        starts = [parse_slot_label(label) for label in v]
        if any(later <= earlier for earlier, later in zip(starts, starts[1:])):
            raise ValueError("Slot templates must be strictly ascending")
        return v

    @model_validator(mode="after")
    def validate_granularity(self) -> "CreateResourceRequest":
        """Slot resources need templates; day resources must not have any."""
        if self.granularity == Granularity.SLOT and not self.slot_templates:
            raise ValueError("Slot resources need at least one slot template")
        if self.granularity == Granularity.DAY and self.slot_templates:
            raise ValueError("Day resources do not take slot templates")
        return self


class GetResourceRequest(BaseModel):
    """Request schema for getting a resource."""

    resource_id: str = Field(..., min_length=1, description="Resource to retrieve")


class Resource(BaseModel):
    """Resource response schema."""

    id: str = Field(..., description="Unique resource ID")
    kind: ResourceKind = Field(..., description="Resource kind")
    name: str = Field(..., description="Display name")
    granularity: Granularity = Field(..., description="Booking granularity")
    weekdays: list[int] = Field(..., description="Operating weekdays")
    dates: list[date] = Field(..., description="Extra operating dates")
    slot_templates: list[str] = Field(..., description="Slot start times")
    is_available: bool = Field(..., description="Whether the resource accepts bookings")
