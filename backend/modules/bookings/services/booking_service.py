# backend/modules/bookings/services/booking_service.py

"""
Booking lifecycle: creation with table allocation, status changes and
cancellation. Every mutation invalidates cached availability for the
booking's venue and date.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List, Optional, Tuple
import logging

from core.config import Settings, get_settings
from core.exceptions import AllocationConflictError, DataAccessError, NotFoundError
from core.locks import AllocationLockManager
from modules.venues.models import Venue
from ..models import Booking, BookingStatus
from ..schemas import BookingCreate
from .allocation_service import AllocationResult, AllocationService
from .availability_cache import AvailabilityCache
from .data_access import SQLAlchemyAvailabilityRepository
from .slot_hold_service import SlotHoldService

logger = logging.getLogger(__name__)


class BookingService:
    """Service for managing bookings"""

    def __init__(
        self,
        db: Session,
        cache: Optional[AvailabilityCache] = None,
        lock_manager: Optional[AllocationLockManager] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.cache = cache
        self.settings = settings or get_settings()
        self.repository = SQLAlchemyAvailabilityRepository(db, self.settings)
        self.allocation_service = AllocationService(
            self.repository,
            lock_manager=lock_manager,
            cache=cache,
            settings=self.settings,
        )
        self.hold_service = SlotHoldService(db, cache=cache, settings=self.settings)

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    def list_bookings(
        self,
        venue_id: str,
        booking_date: Optional[date] = None,
        status: Optional[BookingStatus] = None,
        unallocated_only: bool = False,
    ) -> List[Booking]:
        query = self.db.query(Booking).filter(Booking.venue_id == venue_id)
        if booking_date:
            query = query.filter(Booking.booking_date == booking_date)
        if status:
            query = query.filter(Booking.status == status)
        if unallocated_only:
            query = query.filter(Booking.is_unallocated.is_(True))
        return query.order_by(Booking.booking_date, Booking.booking_time, Booking.id).all()

    async def create_booking(
        self, data: BookingCreate, online_only: bool = True
    ) -> Tuple[Booking, AllocationResult]:
        """
        Create a booking and allocate tables for it.

        The booking is kept even when nothing fits; it is then left
        unallocated for staff to seat by hand. If allocation itself fails
        the booking is removed and the guest's hold released, so a retry
        cannot leave a duplicate behind.
        """
        if not self.db.query(Venue).filter(Venue.id == data.venue_id).first():
            raise NotFoundError(f"Venue {data.venue_id} not found")
        if data.hold_token:
            self.hold_service.get_hold(data.hold_token)

        booking = Booking(
            venue_id=data.venue_id,
            service_id=data.service_id,
            guest_name=data.guest_name,
            email=data.email,
            phone=data.phone,
            party_size=data.party_size,
            booking_date=data.booking_date,
            booking_time=data.booking_time,
            duration_minutes=data.duration_minutes or self.settings.default_duration_minutes,
            status=BookingStatus.CONFIRMED,
            is_unallocated=True,
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(
            f"Created booking {booking.id} for {booking.party_size} at venue "
            f"{booking.venue_id} on {booking.booking_date} {booking.booking_time}"
        )

        # A failed allocation rolls the session back and expires the instance
        booking_id, booking_date = booking.id, booking.booking_date
        try:
            allocation = await self.allocation_service.allocate_booking_to_tables(
                booking_id,
                booking.party_size,
                booking_date,
                booking.booking_time,
                online_only=online_only,
            )
        except (AllocationConflictError, DataAccessError) as e:
            logger.error(f"Allocation failed for new booking {booking_id}: {e.detail}")
            await self._discard_failed_booking(booking_id, data.venue_id, booking_date, data.hold_token)
            raise

        if data.hold_token:
            await self.hold_service.release_hold(data.hold_token, reason="booked")

        self.db.refresh(booking)
        return booking, allocation

    async def _discard_failed_booking(
        self, booking_id: int, venue_id: str, booking_date: date, hold_token: Optional[str]
    ) -> None:
        try:
            self.db.rollback()
            stale = self.db.query(Booking).filter(Booking.id == booking_id).first()
            if stale is not None:
                self.db.delete(stale)
            self.db.commit()
            logger.info(f"Removed booking {booking_id} after failed allocation")
            if hold_token:
                await self.hold_service.release_hold(hold_token, reason="failed")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not clean up booking {booking_id}: {e}")
        if self.cache is not None:
            await self.cache.invalidate(venue_id, booking_date)

    async def reallocate(self, booking_id: int) -> AllocationResult:
        """Staff re-run of allocation across every active table"""
        booking = self.get_booking(booking_id)
        return await self.allocation_service.allocate_booking_to_tables(
            booking.id, booking.party_size, booking.booking_date, booking.booking_time,
        )

    async def update_status(self, booking_id: int, status: BookingStatus) -> Booking:
        booking = self.get_booking(booking_id)
        previous = BookingStatus(booking.status)
        booking.status = status
        booking.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking_id} status {previous.value} -> {BookingStatus(status).value}")
        await self._invalidate(booking)
        return booking

    async def cancel_booking(self, booking_id: int) -> Booking:
        return await self.update_status(booking_id, BookingStatus.CANCELLED)

    async def _invalidate(self, booking: Booking) -> None:
        if self.cache is not None:
            await self.cache.invalidate(booking.venue_id, booking.booking_date)
