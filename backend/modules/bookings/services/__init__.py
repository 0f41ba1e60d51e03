from .data_access import AvailabilityDataSource, SQLAlchemyAvailabilityRepository
from .availability_cache import AvailabilityCache
from .availability_service import AvailabilityService, AvailabilityResult, BookingValidation
from .allocation_service import AllocationService, AllocationResult
from .booking_service import BookingService
from .slot_hold_service import SlotHoldService
from .block_service import BlockService

__all__ = [
    "AvailabilityDataSource",
    "SQLAlchemyAvailabilityRepository",
    "AvailabilityCache",
    "AvailabilityService",
    "AvailabilityResult",
    "BookingValidation",
    "AllocationService",
    "AllocationResult",
    "BookingService",
    "SlotHoldService",
    "BlockService",
]
