# backend/modules/bookings/tests/test_occupancy.py

"""
Tests for the occupancy calculation shared by every availability decision.
"""

import pytest
from datetime import date

from ..models import BookingStatus
from ..services.data_access import BlockInfo, BookingSlot, HoldInfo, TableInfo
from ..services.occupancy import (
    DayOccupancy,
    blocked_table_ids,
    held_table_ids,
    max_available_duration,
    occupied_table_ids,
)
from ..utils.time_utils import parse_time_to_minutes


def slot(booking_id, table_ids, start, duration=120, status=BookingStatus.CONFIRMED):
    return BookingSlot(
        id=booking_id,
        venue_id="venue-1",
        booking_date=date(2025, 6, 1),
        start_minutes=parse_time_to_minutes(start),
        party_size=2,
        status=status.value,
        duration_minutes=duration,
        table_ids=tuple(table_ids),
    )



def block(block_id, table_ids, start, end):
    return BlockInfo(
        id=block_id,
        venue_id="venue-1",
        block_date=date(2025, 6, 1),
        start_minutes=parse_time_to_minutes(start),
        end_minutes=parse_time_to_minutes(end),
        table_ids=tuple(table_ids),
    )


def hold(hold_id, start, party_size):
    return HoldInfo(
        id=hold_id,
        venue_id="venue-1",
        booking_date=date(2025, 6, 1),
        start_minutes=parse_time_to_minutes(start),
        party_size=party_size,
    )


TABLES = (
    TableInfo(id=1, venue_id="venue-1", label="two", seats=2),
    TableInfo(id=2, venue_id="venue-1", label="four", seats=4),
    TableInfo(id=3, venue_id="venue-1", label="six", seats=6),
)


class TestOccupiedTableIds:

    def test_overlapping_booking_occupies_its_table(self):
        bookings = [slot(1, [1], "18:30")]
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:00"), 120) == {1}

    def test_booking_ending_at_candidate_start_does_not_occupy(self):
        bookings = [slot(1, [1], "17:00")]  # 17:00-19:00
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:00"), 120) == set()

    def test_booking_starting_at_candidate_end_does_not_occupy(self):
        bookings = [slot(1, [1], "21:00")]
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:00"), 120) == set()

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.FINISHED])
    def test_cancelled_and_finished_never_occupy(self, status):
        bookings = [slot(1, [1], "19:00", status=status)]
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:00"), 120) == set()

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.SEATED, BookingStatus.LATE, BookingStatus.PENDING_PAYMENT, BookingStatus.NO_SHOW],
    )
    def test_other_statuses_occupy(self, status):
        bookings = [slot(1, [1], "19:00", status=status)]
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:30"), 60) == {1}

    def test_missing_duration_uses_default(self):
        bookings = [slot(1, [1], "17:00", duration=None)]
        assert occupied_table_ids(bookings, parse_time_to_minutes("18:45"), 30) == {1}
        assert occupied_table_ids(
            bookings, parse_time_to_minutes("18:45"), 30, default_duration=90
        ) == set()

    def test_unallocated_booking_occupies_nothing(self):
        bookings = [slot(1, [], "19:00")]
        assert occupied_table_ids(bookings, parse_time_to_minutes("19:00"), 120) == set()

    def test_joined_booking_occupies_every_table(self):
        bookings = [slot(1, [1, 2], "19:00"), slot(2, [3], "12:00")]
        assert occupied_table_ids(bookings, parse_time_to_minutes("20:00"), 60) == {1, 2}


class TestBlockedTableIds:

    def test_overlapping_block_covers_its_tables(self):
        blocks = [block(1, [2], "18:00", "20:00")]
        assert blocked_table_ids(blocks, parse_time_to_minutes("19:30"), 60, [1, 2, 3]) == {2}

    def test_block_ending_at_candidate_start_covers_nothing(self):
        blocks = [block(1, [2], "17:00", "19:00")]
        assert blocked_table_ids(blocks, parse_time_to_minutes("19:00"), 60, [1, 2, 3]) == set()

    def test_block_without_tables_closes_the_venue(self):
        blocks = [block(1, [2], "12:00", "13:00"), block(2, [], "18:00", "19:00")]
        assert blocked_table_ids(blocks, parse_time_to_minutes("17:30"), 60, [1, 2, 3]) == {1, 2, 3}


class TestHeldTableIds:

    def test_hold_takes_smallest_table_that_seats_party(self):
        holds = [hold(1, "19:00", 3)]
        assert held_table_ids(holds, TABLES, set(), parse_time_to_minutes("19:00"), 120) == {2}

    def test_holds_skip_unavailable_and_earlier_held_tables(self):
        holds = [hold(1, "19:00", 2), hold(2, "19:30", 2)]
        held = held_table_ids(holds, TABLES, {1}, parse_time_to_minutes("19:00"), 120)
        assert held == {2, 3}

    def test_hold_outside_candidate_interval_is_ignored(self):
        holds = [hold(1, "17:00", 2)]
        assert held_table_ids(
            holds, TABLES, set(), parse_time_to_minutes("19:00"), 60, hold_duration=120
        ) == set()

    def test_hold_too_large_for_any_free_table_claims_nothing(self):
        holds = [hold(1, "19:00", 8)]
        assert held_table_ids(holds, TABLES, set(), parse_time_to_minutes("19:00"), 120) == set()


class TestDayOccupancy:

    def test_combines_bookings_blocks_and_holds(self):
        occupancy = DayOccupancy(
            tables=TABLES,
            bookings=(slot(1, [1], "19:00"),),
            blocks=(block(1, [3], "18:00", "22:00"),),
            holds=(hold(1, "19:00", 2),),
        )
        # The hold falls through to the four once the two is booked
        assert occupancy.unavailable_table_ids(parse_time_to_minutes("19:00"), 120) == {1, 2, 3}
        assert occupancy.free_tables(TABLES, parse_time_to_minutes("19:00"), 120) == []

    def test_without_holds_only_bookings_and_blocks_count(self):
        occupancy = DayOccupancy(
            tables=TABLES,
            bookings=(slot(1, [1], "19:00"),),
            blocks=(block(1, [3], "18:00", "22:00"),),
        )
        free = occupancy.free_tables(TABLES, parse_time_to_minutes("19:00"), 120)
        assert [t.id for t in free] == [2]


class TestMaxAvailableDuration:

    def test_no_later_booking_gives_full_duration(self):
        result = max_available_duration([], [1], parse_time_to_minutes("18:00"), 120)
        assert not result.has_conflict
        assert result.max_available_duration == 120
        assert result.next_booking_time is None

    def test_next_booking_limits_walk_in(self):
        bookings = [slot(7, [1], "19:00"), slot(8, [1], "20:30"), slot(9, [2], "18:15")]
        result = max_available_duration(bookings, [1], parse_time_to_minutes("18:00"), 120)
        assert result.has_conflict
        assert result.max_available_duration == 60
        assert result.next_booking_time == "19:00"
        assert result.conflicting_booking_id == 7

    def test_later_booking_after_requested_end_is_not_a_conflict(self):
        bookings = [slot(7, [1], "21:00")]
        result = max_available_duration(bookings, [1], parse_time_to_minutes("18:00"), 120)
        assert not result.has_conflict
        assert result.max_available_duration == 120
        assert result.next_booking_time == "21:00"

    def test_running_booking_leaves_no_time(self):
        bookings = [slot(7, [1], "17:30")]
        result = max_available_duration(bookings, [1], parse_time_to_minutes("18:00"), 60)
        assert result.has_conflict
        assert result.max_available_duration == 0
        assert result.conflicting_booking_id == 7

    def test_cancelled_booking_is_ignored(self):
        bookings = [slot(7, [1], "18:30", status=BookingStatus.CANCELLED)]
        result = max_available_duration(bookings, [1], parse_time_to_minutes("18:00"), 120)
        assert not result.has_conflict

    def test_later_block_limits_walk_in(self):
        blocks = [block(1, [1], "19:30", "21:00")]
        result = max_available_duration([], [1], parse_time_to_minutes("18:00"), 120, blocks=blocks)
        assert result.has_conflict
        assert result.max_available_duration == 90
        assert result.next_booking_time == "19:30"
        assert result.conflicting_booking_id is None

    def test_running_venue_block_leaves_no_time(self):
        blocks = [block(1, [], "17:00", "23:00")]
        result = max_available_duration([], [1], parse_time_to_minutes("18:00"), 60, blocks=blocks)
        assert result.has_conflict
        assert result.max_available_duration == 0

    def test_block_on_other_tables_is_ignored(self):
        blocks = [block(1, [2], "18:30", "20:00")]
        result = max_available_duration([], [1], parse_time_to_minutes("18:00"), 120, blocks=blocks)
        assert not result.has_conflict
        assert result.max_available_duration == 120
