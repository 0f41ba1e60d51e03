# backend/modules/bookings/services/allocation_service.py

"""
Table allocation for bookings.

Rules are applied in order, first match wins:

1. staff priority rules for the exact party size, by ascending rank
2. join groups, for parties at or above the large party threshold
3. the single tightest-fitting free table, ties broken by priority rank

When nothing fits the result carries alternative times instead of tables,
and the booking is left unallocated for staff to seat by hand.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence, Tuple
import logging

from core.config import Settings, get_settings
from core.exceptions import AllocationConflictError, InvalidInputError, NotFoundError
from core.locks import AllocationLockManager
from modules.venues.models import PriorityItemType
from ..utils.time_utils import (
    DateLike, TimeLike, minutes_to_time_str, parse_date, parse_time_to_minutes,
)
from .availability_cache import AvailabilityCache
from .availability_service import (
    AvailabilityService, REASON_FULLY_BOOKED, REASON_NO_TABLES,
    applicable_windows, qualifying_tables, usable_join_groups,
    validate_duration, validate_party_size,
)
from .data_access import AvailabilityDataSource, BookingSlot, JoinGroupInfo, TableInfo
from .occupancy import DayOccupancy

logger = logging.getLogger(__name__)

SOURCE_PRIORITY = "priority"
SOURCE_JOIN_GROUP = "join_group"
SOURCE_BEST_FIT = "best_fit"


@dataclass(frozen=True)
class AllocationResult:
    table_ids: Optional[Tuple[int, ...]]
    reason: Optional[str] = None
    alternatives: Optional[Tuple[str, ...]] = None
    source: Optional[str] = None
    booking_id: Optional[int] = None

    @property
    def allocated(self) -> bool:
        return bool(self.table_ids)


def best_fit_table(tables: Sequence[TableInfo], party_size: int) -> Optional[TableInfo]:
    """Highest seat efficiency first, then lowest priority rank."""
    candidates = [t for t in tables if t.seats >= party_size]
    if not candidates:
        return None
    return min(candidates, key=lambda t: (-party_size / t.seats, t.priority_rank, t.id))


class AllocationService:
    """Chooses tables for a party and writes the choice back"""

    def __init__(
        self,
        data_source: AvailabilityDataSource,
        availability: Optional[AvailabilityService] = None,
        lock_manager: Optional[AllocationLockManager] = None,
        cache: Optional[AvailabilityCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.data_source = data_source
        self.settings = settings or get_settings()
        self.cache = cache
        self.availability = availability or AvailabilityService(
            data_source, cache=cache, settings=self.settings
        )
        self.lock_manager = lock_manager or AllocationLockManager(
            timeout_seconds=self.settings.allocation_lock_timeout_seconds
        )

    async def allocate(
        self,
        venue_id: str,
        booking_date: DateLike,
        booking_time: TimeLike,
        party_size: int,
        duration_minutes: Optional[int] = None,
        online_only: bool = False,
        exclude_booking_id: Optional[int] = None,
    ) -> AllocationResult:
        validate_party_size(party_size)
        duration = (
            self.settings.default_duration_minutes
            if duration_minutes is None else validate_duration(duration_minutes)
        )
        day = parse_date(booking_date)
        start = parse_time_to_minutes(booking_time)

        tables = self.data_source.list_active_tables(venue_id, online_only=online_only)
        bookings = [
            b for b in self.data_source.list_active_bookings(venue_id, day)
            if b.id != exclude_booking_id
        ]
        # Holds are advisory and usually belong to the party being seated
        occupancy = DayOccupancy(
            tables=tuple(tables),
            bookings=tuple(bookings),
            blocks=tuple(self.data_source.list_blocks(venue_id, day)),
            default_duration=self.settings.default_duration_minutes,
        )
        occupied = occupancy.unavailable_table_ids(start, duration)
        groups = usable_join_groups(self.data_source.list_join_groups(venue_id), tables, party_size)

        result = self._match_priority(venue_id, party_size, tables, groups, occupied)
        if result is None and party_size >= self.settings.large_party_threshold:
            result = self._match_join_group(groups, occupied)
        if result is None:
            table = best_fit_table([t for t in tables if t.id not in occupied], party_size)
            if table is not None:
                result = AllocationResult(table_ids=(table.id,), source=SOURCE_BEST_FIT)

        if result is not None:
            logger.info(
                f"Allocated tables {list(result.table_ids)} ({result.source}) for party of "
                f"{party_size} at venue {venue_id} on {day}"
            )
            return result

        return self._no_capacity(venue_id, day, start, duration, party_size, tables, groups, occupancy)

    def _match_priority(
        self,
        venue_id: str,
        party_size: int,
        tables: Sequence[TableInfo],
        groups: Sequence[JoinGroupInfo],
        occupied: set,
    ) -> Optional[AllocationResult]:
        tables_by_id = {t.id: t for t in tables}
        groups_by_id = {g.id: g for g in groups}

        for rule in self.data_source.list_priorities(venue_id, party_size):
            if rule.item_type == PriorityItemType.TABLE.value:
                table = tables_by_id.get(rule.item_id)
                if table and table.id not in occupied and table.seats >= party_size:
                    return AllocationResult(table_ids=(table.id,), source=SOURCE_PRIORITY)
            elif rule.item_type == PriorityItemType.GROUP.value:
                group = groups_by_id.get(rule.item_id)
                if group and occupied.isdisjoint(group.table_ids):
                    return AllocationResult(table_ids=tuple(group.table_ids), source=SOURCE_PRIORITY)
        return None

    @staticmethod
    def _match_join_group(groups: Sequence[JoinGroupInfo], occupied: set) -> Optional[AllocationResult]:
        for group in groups:
            if occupied.isdisjoint(group.table_ids):
                return AllocationResult(table_ids=tuple(group.table_ids), source=SOURCE_JOIN_GROUP)
        return None

    def _no_capacity(
        self,
        venue_id: str,
        day: date,
        start: int,
        duration: int,
        party_size: int,
        tables: Sequence[TableInfo],
        groups: Sequence[JoinGroupInfo],
        occupancy: DayOccupancy,
    ) -> AllocationResult:
        fitting = qualifying_tables(tables, party_size)
        if not fitting and not groups:
            reason = REASON_NO_TABLES
            alternatives: Tuple[str, ...] = ()
        else:
            reason = REASON_FULLY_BOOKED
            windows = applicable_windows(self.data_source.list_booking_windows(venue_id), day)
            # Same join group rule as the allocation itself
            joinable = groups if party_size >= self.settings.large_party_threshold else ()
            alternatives = self.availability.alternative_times(
                fitting, occupancy, windows, start, duration, groups=joinable
            )
        logger.info(f"No allocation for party of {party_size} at venue {venue_id} on {day}: {reason}")
        return AllocationResult(table_ids=None, reason=reason, alternatives=alternatives)

    async def allocate_booking_to_tables(
        self,
        booking_id: int,
        party_size: int,
        booking_date: DateLike,
        booking_time: TimeLike,
        online_only: bool = False,
    ) -> AllocationResult:
        """
        Allocate and persist tables for an existing booking.

        Runs under the venue/date allocation lock. A write that loses a race
        is retried with a fresh read; if it keeps losing, or nothing fits,
        the booking is marked unallocated.

        The stored booking decides the slot. A date or time that disagrees
        with it is rejected rather than allocated.
        """
        booking = self.data_source.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        day = parse_date(booking_date)
        start = parse_time_to_minutes(booking_time)
        if (day, start) != (booking.booking_date, booking.start_minutes):
            raise InvalidInputError(
                f"Booking {booking_id} is for {booking.booking_date} "
                f"{minutes_to_time_str(booking.start_minutes)}, "
                f"not {day} {minutes_to_time_str(start)}"
            )
        venue_id = booking.venue_id

        lock_name = AllocationLockManager.slot_key(venue_id, day)
        try:
            async with self.lock_manager.hold(lock_name):
                result = await self._allocate_and_write(booking, party_size, online_only)
        except TimeoutError:
            logger.error(f"Timed out waiting for allocation lock {lock_name}")
            raise AllocationConflictError("Allocation is busy for this date, please retry")

        if self.cache is not None:
            await self.cache.invalidate(venue_id, day)
        return result

    async def _allocate_and_write(
        self,
        booking: BookingSlot,
        party_size: int,
        online_only: bool,
    ) -> AllocationResult:
        day = booking.booking_date
        start = booking.start_minutes
        attempts = 1 + max(0, self.settings.allocation_conflict_retries)
        result: Optional[AllocationResult] = None

        for attempt in range(1, attempts + 1):
            result = await self.allocate(
                booking.venue_id, day, start, party_size,
                duration_minutes=booking.duration_minutes,
                online_only=online_only,
                exclude_booking_id=booking.id,
            )
            if not result.allocated:
                break
            try:
                self.data_source.write_booking_allocation(booking.id, list(result.table_ids), False)
                return AllocationResult(
                    table_ids=result.table_ids, source=result.source, booking_id=booking.id
                )
            except AllocationConflictError:
                logger.warning(
                    f"Allocation conflict for booking {booking.id} "
                    f"(attempt {attempt}/{attempts})"
                )
                result = None

        if result is None:
            result = AllocationResult(
                table_ids=None,
                reason=REASON_FULLY_BOOKED,
                alternatives=await self.availability.find_alternative_times(
                    booking.venue_id, day, start, party_size,
                    duration_minutes=booking.duration_minutes, online_only=online_only,
                ),
            )

        self.data_source.write_booking_allocation(booking.id, None, True)
        logger.info(f"Booking {booking.id} left unallocated: {result.reason}")
        return AllocationResult(
            table_ids=None,
            reason=result.reason,
            alternatives=result.alternatives,
            booking_id=booking.id,
        )
