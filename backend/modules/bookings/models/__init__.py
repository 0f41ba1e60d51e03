from .booking_models import (
    Booking,
    BookingStatus,
    BookingTableAssignment,
    SlotHold,
    NON_OCCUPYING_STATUSES,
)

__all__ = [
    "Booking",
    "BookingStatus",
    "BookingTableAssignment",
    "SlotHold",
    "NON_OCCUPYING_STATUSES",
]
