# backend/modules/bookings/services/slot_hold_service.py

"""
Advisory holds on a slot while a guest fills in their details.

Active holds count against guest-facing availability, each one taking the
smallest table that seats its party. Allocation ignores them and the
allocation write re-checks occupancy regardless.
"""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional
import logging
import uuid

from core.config import Settings, get_settings
from core.exceptions import ConflictError, NotFoundError
from modules.venues.models import Venue
from ..models import SlotHold
from ..schemas import SlotHoldCreate
from .availability_cache import AvailabilityCache

logger = logging.getLogger(__name__)


class SlotHoldService:
    """Service for creating, extending and releasing slot holds"""

    def __init__(
        self,
        db: Session,
        cache: Optional[AvailabilityCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.cache = cache
        self.settings = settings or get_settings()

    def _hold_duration(self) -> timedelta:
        return timedelta(minutes=self.settings.slot_hold_minutes)

    def _active_hold_for_slot(self, data: SlotHoldCreate, now: datetime) -> Optional[SlotHold]:
        return (
            self.db.query(SlotHold)
            .filter(
                SlotHold.venue_id == data.venue_id,
                SlotHold.service_id == data.service_id,
                SlotHold.booking_date == data.booking_date,
                SlotHold.start_time == data.start_time,
                SlotHold.released_at.is_(None),
                SlotHold.expires_at > now,
            )
            .first()
        )

    def get_hold(self, lock_token: str) -> SlotHold:
        hold = self.db.query(SlotHold).filter(SlotHold.lock_token == lock_token).first()
        if not hold:
            raise NotFoundError(f"Hold {lock_token} not found")
        return hold

    async def create_hold(self, data: SlotHoldCreate) -> SlotHold:
        """Hold a slot, refusing if another guest holds it already"""
        if not self.db.query(Venue).filter(Venue.id == data.venue_id).first():
            raise NotFoundError(f"Venue {data.venue_id} not found")

        now = datetime.utcnow()
        existing = self._active_hold_for_slot(data, now)
        if existing:
            logger.warning(
                f"Slot {data.booking_date} {data.start_time} at venue {data.venue_id} "
                f"already held until {existing.expires_at}"
            )
            raise ConflictError(
                "This time slot is currently being booked by another guest",
                error_code="SLOT_LOCKED",
            )

        hold = SlotHold(
            venue_id=data.venue_id,
            service_id=data.service_id,
            booking_date=data.booking_date,
            start_time=data.start_time,
            party_size=data.party_size,
            lock_token=str(uuid.uuid4()),
            locked_at=now,
            expires_at=now + self._hold_duration(),
            reason="created",
        )
        self.db.add(hold)
        self.db.commit()
        self.db.refresh(hold)

        logger.info(f"Created hold {hold.lock_token} expiring at {hold.expires_at}")
        await self._invalidate(hold)
        return hold

    async def extend_hold(self, lock_token: str) -> SlotHold:
        hold = self.get_hold(lock_token)
        now = datetime.utcnow()
        if hold.released_at is not None or hold.expires_at <= now:
            raise ConflictError("Hold has expired or was released", error_code="HOLD_EXPIRED")

        hold.expires_at = now + self._hold_duration()
        hold.reason = "extended"
        self.db.commit()
        self.db.refresh(hold)
        return hold

    async def release_hold(self, lock_token: str, reason: str = "released") -> SlotHold:
        hold = self.get_hold(lock_token)
        if hold.released_at is None:
            hold.released_at = datetime.utcnow()
            hold.reason = reason
            self.db.commit()
            self.db.refresh(hold)
            logger.info(f"Released hold {lock_token} ({reason})")
            await self._invalidate(hold)
        return hold

    async def cleanup_expired(self) -> int:
        """
        Mark lapsed holds as released and drop lapsed availability entries.
        Returns how many holds were closed.
        """
        now = datetime.utcnow()
        expired = (
            self.db.query(SlotHold)
            .filter(SlotHold.released_at.is_(None), SlotHold.expires_at <= now)
            .all()
        )
        for hold in expired:
            hold.released_at = now
            hold.reason = "expired"
        self.db.commit()

        for hold in expired:
            await self._invalidate(hold)
        if expired:
            logger.info(f"Released {len(expired)} expired slot holds")
        if self.cache is not None:
            purged = await self.cache.purge_expired()
            if purged:
                logger.debug(f"Purged {purged} expired availability entries")
        return len(expired)

    async def _invalidate(self, hold: SlotHold) -> None:
        if self.cache is not None:
            await self.cache.invalidate(hold.venue_id, hold.booking_date)
