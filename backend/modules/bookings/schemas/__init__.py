from .booking_schemas import (
    AvailabilityResponse,
    DateAvailabilityResponse,
    AvailableDatesResponse,
    SlotRangeResponse,
    BookingValidationRequest,
    BookingValidationResponse,
    AllocationRequest,
    AllocationResponse,
    BookingCreate,
    BookingStatusUpdate,
    BookingResponse,
    BookingCreateResponse,
    WalkInCheckRequest,
    WalkInCheckResponse,
    SlotHoldCreate,
    SlotHoldResponse,
    BlockCreate,
    BlockResponse,
)

__all__ = [
    "AvailabilityResponse",
    "DateAvailabilityResponse",
    "AvailableDatesResponse",
    "SlotRangeResponse",
    "BookingValidationRequest",
    "BookingValidationResponse",
    "AllocationRequest",
    "AllocationResponse",
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingResponse",
    "BookingCreateResponse",
    "WalkInCheckRequest",
    "WalkInCheckResponse",
    "SlotHoldCreate",
    "SlotHoldResponse",
    "BlockCreate",
    "BlockResponse",
]
