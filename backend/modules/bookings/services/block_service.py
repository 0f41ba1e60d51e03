# backend/modules/bookings/services/block_service.py

"""
Staff blocks: time ranges on a date when some tables, or the whole venue,
take no bookings. Existing bookings are left alone.
"""

from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
import logging

from core.exceptions import InvalidInputError, NotFoundError
from modules.venues.models import Block, Table, Venue
from ..schemas import BlockCreate
from .availability_cache import AvailabilityCache

logger = logging.getLogger(__name__)


class BlockService:
    """Service for creating and removing blocks"""

    def __init__(self, db: Session, cache: Optional[AvailabilityCache] = None):
        self.db = db
        self.cache = cache

    def list_blocks(self, venue_id: str, block_date: Optional[date] = None) -> List[Block]:
        query = self.db.query(Block).filter(Block.venue_id == venue_id)
        if block_date:
            query = query.filter(Block.block_date == block_date)
        return query.order_by(Block.block_date, Block.start_time, Block.id).all()

    async def create_block(self, data: BlockCreate) -> Block:
        if not self.db.query(Venue).filter(Venue.id == data.venue_id).first():
            raise NotFoundError(f"Venue {data.venue_id} not found")

        table_ids = sorted(set(data.table_ids))
        if table_ids:
            known = {
                t.id for t in self.db.query(Table.id).filter(
                    Table.venue_id == data.venue_id, Table.id.in_(table_ids)
                )
            }
            unknown = [t for t in table_ids if t not in known]
            if unknown:
                raise InvalidInputError(f"Tables {unknown} do not belong to venue {data.venue_id}")

        block = Block(
            venue_id=data.venue_id,
            block_date=data.block_date,
            start_time=data.start_time,
            end_time=data.end_time,
            table_ids=table_ids,
            reason=data.reason,
        )
        self.db.add(block)
        self.db.commit()
        self.db.refresh(block)

        scope = f"tables {table_ids}" if table_ids else "whole venue"
        logger.info(
            f"Blocked {scope} at venue {block.venue_id} on {block.block_date} "
            f"{block.start_time}-{block.end_time}"
        )
        await self._invalidate(block.venue_id, block.block_date)
        return block

    async def delete_block(self, block_id: int) -> None:
        block = self.db.query(Block).filter(Block.id == block_id).first()
        if not block:
            raise NotFoundError(f"Block {block_id} not found")
        venue_id, block_date = block.venue_id, block.block_date
        self.db.delete(block)
        self.db.commit()
        logger.info(f"Removed block {block_id}")
        await self._invalidate(venue_id, block_date)

    async def _invalidate(self, venue_id: str, block_date: date) -> None:
        if self.cache is not None:
            await self.cache.invalidate(venue_id, block_date)
