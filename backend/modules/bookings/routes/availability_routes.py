# backend/modules/bookings/routes/availability_routes.py

"""
Availability API routes for date pickers, time pickers and staff tooling.
"""

from fastapi import APIRouter, Depends, Query
from datetime import date, time
from typing import Optional

from ..dependencies import get_allocation_service, get_availability_service
from ..schemas import (
    AllocationRequest,
    AllocationResponse,
    AvailabilityResponse,
    AvailableDatesResponse,
    BookingValidationRequest,
    BookingValidationResponse,
    DateAvailabilityResponse,
    SlotRangeResponse,
    WalkInCheckRequest,
    WalkInCheckResponse,
)
from ..services import AllocationService, AvailabilityService

router = APIRouter()


@router.get("/venues/{venue_id}/dates/{booking_date}", response_model=DateAvailabilityResponse)
async def check_date(
    venue_id: str,
    booking_date: date,
    party_size: int = Query(...),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Whether any slot on the date can seat the party."""
    available = await service.is_date_available(venue_id, booking_date, party_size)
    return DateAvailabilityResponse(
        venue_id=venue_id,
        booking_date=booking_date,
        party_size=party_size,
        available=available,
    )


@router.get("/venues/{venue_id}/dates", response_model=AvailableDatesResponse)
async def list_available_dates(
    venue_id: str,
    party_size: int = Query(...),
    start_date: Optional[date] = Query(None),
    days: int = Query(30, ge=1, le=120),
    service: AvailabilityService = Depends(get_availability_service),
):
    start = start_date or date.today()
    available = await service.get_available_dates(venue_id, party_size, start, days)
    return AvailableDatesResponse(
        venue_id=venue_id,
        party_size=party_size,
        start_date=start,
        days=days,
        available_dates=available,
    )


@router.get("/venues/{venue_id}/slot", response_model=AvailabilityResponse)
async def check_time_slot(
    venue_id: str,
    booking_date: date = Query(...),
    booking_time: time = Query(...),
    party_size: int = Query(...),
    duration_minutes: Optional[int] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Check one slot; suggests nearby times when it is full."""
    result = await service.check_time_slot(
        venue_id, booking_date, booking_time, party_size, duration_minutes
    )
    return AvailabilityResponse.model_validate(result)


@router.get("/venues/{venue_id}/slots", response_model=SlotRangeResponse)
async def check_slot_range(
    venue_id: str,
    booking_date: date = Query(...),
    start_time: time = Query(...),
    end_time: time = Query(...),
    party_size: int = Query(...),
    duration_minutes: Optional[int] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Per-slot availability including join groups."""
    results = await service.check_availability_with_join_groups(
        venue_id, booking_date, start_time, end_time, party_size, duration_minutes
    )
    return SlotRangeResponse(
        venue_id=venue_id,
        booking_date=booking_date,
        party_size=party_size,
        slots={
            slot: AvailabilityResponse.model_validate(result)
            for slot, result in results.items()
        },
    )


@router.post("/validate", response_model=BookingValidationResponse)
async def validate_booking(
    request: BookingValidationRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    result = await service.validate_booking_request(
        request.venue_id,
        request.booking_date,
        request.booking_time,
        request.party_size,
        service_id=request.service_id,
        duration_minutes=request.duration_minutes,
    )
    return BookingValidationResponse.model_validate(result)


@router.post("/allocate", response_model=AllocationResponse)
async def preview_allocation(
    request: AllocationRequest,
    service: AllocationService = Depends(get_allocation_service),
):
    """Which tables would be chosen right now; nothing is written."""
    result = await service.allocate(
        request.venue_id,
        request.booking_date,
        request.booking_time,
        request.party_size,
        request.duration_minutes,
    )
    return AllocationResponse.model_validate(result)


@router.post("/walk-in", response_model=WalkInCheckResponse)
async def check_walk_in(
    request: WalkInCheckRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """How long the given tables stay free for a walk-in party."""
    result = await service.check_table_conflicts(
        request.venue_id,
        request.booking_date,
        request.table_ids,
        request.start_time,
        request.duration_minutes,
    )
    return WalkInCheckResponse.model_validate(result)
