# backend/modules/bookings/routes/hold_routes.py

"""
Slot hold API routes.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import get_slot_hold_service
from ..schemas import SlotHoldCreate, SlotHoldResponse
from ..services import SlotHoldService

router = APIRouter()


@router.post("/", response_model=SlotHoldResponse, status_code=status.HTTP_201_CREATED)
async def create_hold(
    hold_data: SlotHoldCreate,
    service: SlotHoldService = Depends(get_slot_hold_service),
):
    hold = await service.create_hold(hold_data)
    return SlotHoldResponse.model_validate(hold)


@router.post("/{lock_token}/extend", response_model=SlotHoldResponse)
async def extend_hold(
    lock_token: str,
    service: SlotHoldService = Depends(get_slot_hold_service),
):
    hold = await service.extend_hold(lock_token)
    return SlotHoldResponse.model_validate(hold)


@router.post("/{lock_token}/release", response_model=SlotHoldResponse)
async def release_hold(
    lock_token: str,
    service: SlotHoldService = Depends(get_slot_hold_service),
):
    hold = await service.release_hold(lock_token)
    return SlotHoldResponse.model_validate(hold)


@router.post("/cleanup")
async def cleanup_expired_holds(
    service: SlotHoldService = Depends(get_slot_hold_service),
):
    """Release holds whose time has run out."""
    released = await service.cleanup_expired()
    return {"released": released}
