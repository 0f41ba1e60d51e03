# backend/modules/bookings/schemas/booking_schemas.py

"""
Pydantic schemas for bookings, availability and slot holds.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import date, time, datetime
from typing import Dict, List, Optional

from ..models import BookingStatus


class AvailabilityResponse(BaseModel):
    """Outcome of a single slot check"""

    model_config = ConfigDict(from_attributes=True)

    available: bool
    reason: Optional[str] = None
    suggested_times: Optional[List[str]] = None
    suggested_tables: Optional[List[str]] = None


class DateAvailabilityResponse(BaseModel):
    venue_id: str
    booking_date: date
    party_size: int
    available: bool


class AvailableDatesResponse(BaseModel):
    venue_id: str
    party_size: int
    start_date: date
    days: int
    available_dates: List[date]


class SlotRangeResponse(BaseModel):
    """Per-slot availability keyed by "HH:MM" """

    venue_id: str
    booking_date: date
    party_size: int
    slots: Dict[str, AvailabilityResponse]


class BookingValidationRequest(BaseModel):
    venue_id: str
    booking_date: date
    booking_time: time
    party_size: int
    service_id: Optional[str] = None
    duration_minutes: Optional[int] = None


class BookingValidationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    valid: bool
    reason: Optional[str] = None
    suggested_times: Optional[List[str]] = None


class AllocationRequest(BaseModel):
    """Ad hoc allocation question, nothing is written"""

    venue_id: str
    booking_date: date
    booking_time: time
    party_size: int
    duration_minutes: Optional[int] = None


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: Optional[int] = None
    table_ids: Optional[List[int]] = None
    reason: Optional[str] = None
    alternatives: Optional[List[str]] = None
    source: Optional[str] = None


class BookingCreate(BaseModel):
    """Schema for creating a booking"""

    venue_id: str
    service_id: Optional[str] = None
    guest_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    party_size: int = Field(..., ge=1)
    booking_date: date
    booking_time: time
    duration_minutes: Optional[int] = Field(None, ge=1)
    hold_token: Optional[str] = None

    @field_validator("guest_name")
    @classmethod
    def validate_guest_name(cls, v):
        if not v.strip():
            raise ValueError("Guest name cannot be blank")
        return v.strip()


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    """Schema for booking response"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    venue_id: str
    service_id: Optional[str] = None
    table_id: Optional[int] = None
    table_ids: List[int] = []
    is_unallocated: bool
    guest_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    party_size: int
    booking_date: date
    booking_time: time
    duration_minutes: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingCreateResponse(BaseModel):
    booking: BookingResponse
    allocation: AllocationResponse


class WalkInCheckRequest(BaseModel):
    venue_id: str
    table_ids: List[int] = Field(..., min_length=1)
    booking_date: date
    start_time: time
    duration_minutes: Optional[int] = None


class WalkInCheckResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    has_conflict: bool
    max_available_duration: int
    next_booking_time: Optional[str] = None
    conflicting_booking_id: Optional[int] = None


class SlotHoldCreate(BaseModel):
    venue_id: str
    service_id: Optional[str] = None
    booking_date: date
    start_time: time
    party_size: int = Field(..., ge=1)


class SlotHoldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    venue_id: str
    service_id: Optional[str] = None
    booking_date: date
    start_time: time
    party_size: int
    lock_token: str
    locked_at: datetime
    expires_at: datetime
    released_at: Optional[datetime] = None
    reason: Optional[str] = None


class BlockCreate(BaseModel):
    """Staff block; an empty table list blocks the whole venue"""

    venue_id: str
    block_date: date
    start_time: time
    end_time: time
    table_ids: List[int] = Field(default_factory=list)
    reason: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_time_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("Block end time must be after its start time")
        return self


class BlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    venue_id: str
    block_date: date
    start_time: time
    end_time: time
    table_ids: List[int]
    reason: Optional[str] = None
