# backend/modules/bookings/routes/block_routes.py

"""
Staff block API routes.
"""

from fastapi import APIRouter, Depends, Query, status
from datetime import date
from typing import List, Optional

from ..dependencies import get_block_service
from ..schemas import BlockCreate, BlockResponse
from ..services import BlockService

router = APIRouter()


@router.post("/", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
async def create_block(
    block_data: BlockCreate,
    service: BlockService = Depends(get_block_service),
):
    block = await service.create_block(block_data)
    return BlockResponse.model_validate(block)


@router.get("/", response_model=List[BlockResponse])
async def list_blocks(
    venue_id: str = Query(...),
    block_date: Optional[date] = Query(None),
    service: BlockService = Depends(get_block_service),
):
    return [BlockResponse.model_validate(b) for b in service.list_blocks(venue_id, block_date)]


@router.delete("/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: int,
    service: BlockService = Depends(get_block_service),
):
    await service.delete_block(block_id)
