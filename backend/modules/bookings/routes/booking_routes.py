# backend/modules/bookings/routes/booking_routes.py

"""
Booking API routes.
"""

from fastapi import APIRouter, Depends, Query, status
from datetime import date
from typing import List, Optional

from ..dependencies import get_booking_service
from ..models import BookingStatus
from ..schemas import (
    AllocationResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    BookingStatusUpdate,
)
from ..services import BookingService

router = APIRouter()


@router.post("/", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """
    Create a booking and allocate tables for it.

    - Only online-bookable tables are considered
    - When nothing fits the booking is kept, unallocated, with alternatives
    """
    booking, allocation = await service.create_booking(booking_data)
    return BookingCreateResponse(
        booking=BookingResponse.model_validate(booking),
        allocation=AllocationResponse.model_validate(allocation),
    )


@router.get("/", response_model=List[BookingResponse])
async def list_bookings(
    venue_id: str = Query(...),
    booking_date: Optional[date] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    unallocated_only: bool = Query(False),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(venue_id, booking_date, booking_status, unallocated_only)
    return [BookingResponse.model_validate(b) for b in bookings]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.model_validate(service.get_booking(booking_id))


@router.post("/{booking_id}/allocate", response_model=AllocationResponse)
async def reallocate_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Staff re-allocation across all active tables."""
    result = await service.reallocate(booking_id)
    return AllocationResponse.model_validate(result)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    update: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update_status(booking_id, update.status)
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.cancel_booking(booking_id)
    return BookingResponse.model_validate(booking)
