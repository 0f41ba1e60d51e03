# backend/modules/bookings/dependencies.py

"""
FastAPI dependencies wiring the booking services to per-request sessions
and the process-wide cache and lock manager kept on ``app.state``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Optional

from core.config import get_settings
from core.database import get_db
from core.locks import AllocationLockManager
from .services import (
    AllocationService,
    AvailabilityCache,
    AvailabilityService,
    BlockService,
    BookingService,
    SlotHoldService,
    SQLAlchemyAvailabilityRepository,
)


def get_availability_cache(request: Request) -> Optional[AvailabilityCache]:
    return getattr(request.app.state, "availability_cache", None)


def get_lock_manager(request: Request) -> Optional[AllocationLockManager]:
    return getattr(request.app.state, "lock_manager", None)


def get_availability_service(
    db: Session = Depends(get_db),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
) -> AvailabilityService:
    settings = get_settings()
    return AvailabilityService(
        SQLAlchemyAvailabilityRepository(db, settings), cache=cache, settings=settings
    )


def get_allocation_service(
    availability: AvailabilityService = Depends(get_availability_service),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
    lock_manager: Optional[AllocationLockManager] = Depends(get_lock_manager),
) -> AllocationService:
    return AllocationService(
        availability.data_source,
        availability=availability,
        lock_manager=lock_manager,
        cache=cache,
        settings=availability.settings,
    )


def get_booking_service(
    db: Session = Depends(get_db),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
    lock_manager: Optional[AllocationLockManager] = Depends(get_lock_manager),
) -> BookingService:
    return BookingService(db, cache=cache, lock_manager=lock_manager)


def get_slot_hold_service(
    db: Session = Depends(get_db),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
) -> SlotHoldService:
    return SlotHoldService(db, cache=cache)


def get_block_service(
    db: Session = Depends(get_db),
    cache: Optional[AvailabilityCache] = Depends(get_availability_cache),
) -> BlockService:
    return BlockService(db, cache=cache)
