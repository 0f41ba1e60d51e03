# backend/modules/bookings/tests/test_booking_service.py

import pytest
from datetime import date, time
from unittest.mock import patch

from core.exceptions import AllocationConflictError, DataAccessError, NotFoundError
from ..models import Booking, SlotHold
from ..schemas import BookingCreate
from ..services import BookingService
from ..services.availability_cache import AvailabilityCache, DATE_NAMESPACE
from .factories import SlotHoldFactory, TableFactory

SUNDAY = date(2025, 6, 1)


@pytest.fixture
def booking_service(db_session, cache, settings):
    return BookingService(db_session, cache=cache, settings=settings)


def booking_data(venue_id, **overrides):
    data = {
        "venue_id": venue_id,
        "service_id": "dinner",
        "guest_name": "Grace Hopper",
        "party_size": 2,
        "booking_date": SUNDAY,
        "booking_time": time(19, 0),
        "duration_minutes": 120,
    }
    data.update(overrides)
    return BookingCreate(**data)


class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_allocates_and_releases_hold(self, booking_service, db_session, venue, four_top):
        hold = SlotHoldFactory(venue_id=venue.id, booking_date=SUNDAY, start_time=time(19, 0))

        booking, allocation = await booking_service.create_booking(
            booking_data(venue.id, hold_token=hold.lock_token)
        )

        db_session.refresh(hold)
        assert allocation.table_ids == (four_top.id,)
        assert booking.is_unallocated is False
        assert hold.reason == "booked"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        DataAccessError(operation="write_booking_allocation"),
        AllocationConflictError("Allocation is busy for this date, please retry"),
    ])
    async def test_failed_allocation_leaves_no_booking_and_releases_hold(
        self, booking_service, db_session, venue, four_top, error
    ):
        hold = SlotHoldFactory(venue_id=venue.id, booking_date=SUNDAY, start_time=time(19, 0))

        with patch.object(booking_service.repository, "write_booking_allocation", side_effect=error):
            with pytest.raises(type(error)):
                await booking_service.create_booking(
                    booking_data(venue.id, hold_token=hold.lock_token)
                )

        assert db_session.query(Booking).count() == 0
        released = db_session.query(SlotHold).filter(SlotHold.id == hold.id).one()
        assert released.released_at is not None
        assert released.reason == "failed"

    @pytest.mark.asyncio
    async def test_retry_after_failure_creates_a_single_booking(
        self, booking_service, db_session, venue, four_top
    ):
        with patch.object(
            booking_service.repository, "write_booking_allocation",
            side_effect=DataAccessError(operation="write_booking_allocation"),
        ):
            with pytest.raises(DataAccessError):
                await booking_service.create_booking(booking_data(venue.id))

        booking, allocation = await booking_service.create_booking(booking_data(venue.id))

        assert db_session.query(Booking).count() == 1
        assert allocation.table_ids == (four_top.id,)

    @pytest.mark.asyncio
    async def test_failed_allocation_invalidates_cache(self, booking_service, cache, venue, four_top):
        key = AvailabilityCache.make_key(DATE_NAMESPACE, venue.id, 2, SUNDAY)
        await cache.set(key, True)

        with patch.object(
            booking_service.repository, "write_booking_allocation",
            side_effect=DataAccessError(operation="write_booking_allocation"),
        ):
            with pytest.raises(DataAccessError):
                await booking_service.create_booking(booking_data(venue.id))

        assert await cache.get(key) is None

    @pytest.mark.asyncio
    async def test_unknown_hold_token_rejected_before_booking(self, booking_service, db_session, venue, four_top):
        with pytest.raises(NotFoundError):
            await booking_service.create_booking(booking_data(venue.id, hold_token="missing"))

        assert db_session.query(Booking).count() == 0

    @pytest.mark.asyncio
    async def test_nothing_fits_keeps_booking_unallocated(self, booking_service, db_session, venue):
        TableFactory(venue=venue, seats=2, online_bookable=False)

        booking, allocation = await booking_service.create_booking(booking_data(venue.id))

        assert db_session.query(Booking).count() == 1
        assert booking.is_unallocated is True
        assert allocation.table_ids is None
