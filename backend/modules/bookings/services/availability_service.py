# backend/modules/bookings/services/availability_service.py

"""
Availability decisions for dates, single time slots and slot ranges.

Guest-facing checks (dates and single slots) consider individual
online-bookable tables only. The slot range check used by staff tooling
also considers join groups and every active table.

Bookings and staff blocks reduce availability everywhere. Active slot
holds only count for the guest-facing checks.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from core.config import Settings, get_settings
from core.exceptions import InvalidInputError
from ..utils.time_utils import (
    DateLike, TimeLike, MINUTES_PER_DAY,
    generate_time_slots, iter_dates, minutes_to_time_str, parse_date, parse_time_to_minutes,
)
from .availability_cache import (
    AvailabilityCache, DATE_NAMESPACE, JOIN_GROUP_NAMESPACE, RANGE_NAMESPACE, SLOT_NAMESPACE,
)
from .data_access import (
    AvailabilityDataSource, BlockInfo, BookingSlot, BookingWindowInfo, HoldInfo,
    JoinGroupInfo, TableInfo,
)
from .occupancy import DayOccupancy, TableConflictResult, max_available_duration

logger = logging.getLogger(__name__)

REASON_NO_TABLES = "no tables for this size"
REASON_FULLY_BOOKED = "fully booked"
REASON_NO_WINDOW = "no booking window for this date"
REASON_OUTSIDE_HOURS = "outside booking hours"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    suggested_times: Optional[Tuple[str, ...]] = None
    suggested_tables: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class BookingValidation:
    valid: bool
    reason: Optional[str] = None
    suggested_times: Optional[Tuple[str, ...]] = None


def validate_party_size(party_size: int) -> int:
    if isinstance(party_size, bool) or not isinstance(party_size, int) or party_size <= 0:
        raise InvalidInputError(f"Party size must be a positive integer, got {party_size!r}")
    return party_size


def validate_duration(duration_minutes: int) -> int:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise InvalidInputError(f"Duration must be a positive number of minutes, got {duration_minutes!r}")
    return duration_minutes


def applicable_windows(windows: Iterable[BookingWindowInfo], day: date) -> List[BookingWindowInfo]:
    return [w for w in windows if w.applies_to(day)]


def qualifying_tables(tables: Iterable[TableInfo], party_size: int) -> List[TableInfo]:
    return [t for t in tables if t.seats >= party_size]


def usable_join_groups(
    groups: Iterable[JoinGroupInfo], tables: Iterable[TableInfo], party_size: int
) -> List[JoinGroupInfo]:
    """Groups sized for the party whose members are all known active tables."""
    known = {t.id for t in tables}
    return [
        g for g in groups
        if g.table_ids and g.fits(party_size) and known.issuperset(g.table_ids)
    ]


class AvailabilityService:
    """Answers availability questions against a data source snapshot"""

    def __init__(
        self,
        data_source: AvailabilityDataSource,
        cache: Optional[AvailabilityCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.data_source = data_source
        self.settings = settings or get_settings()
        self.cache = cache

    @property
    def default_duration(self) -> int:
        return self.settings.default_duration_minutes

    @property
    def granularity(self) -> int:
        return self.settings.slot_granularity_minutes

    def _resolve_duration(self, duration_minutes: Optional[int]) -> int:
        if duration_minutes is None:
            return self.default_duration
        return validate_duration(duration_minutes)

    async def _cached(self, key):
        if self.cache is None:
            return None
        return await self.cache.get(key)

    async def _store(self, key, value) -> None:
        if self.cache is not None:
            await self.cache.set(key, value)

    def _day_occupancy(
        self,
        venue_id: str,
        day: date,
        tables: Sequence[TableInfo],
        bookings: Optional[Sequence[BookingSlot]] = None,
        blocks: Optional[Sequence[BlockInfo]] = None,
        holds: Optional[Sequence[HoldInfo]] = None,
        include_holds: bool = False,
    ) -> DayOccupancy:
        """
        Bookings and blocks for the date, plus active holds when the
        question comes from a guest. ``tables`` is every table in play,
        not just those that seat the party, so holds claim realistic tables.
        """
        if bookings is None:
            bookings = self.data_source.list_active_bookings(venue_id, day)
        if blocks is None:
            blocks = self.data_source.list_blocks(venue_id, day)
        if include_holds and holds is None:
            holds = self.data_source.list_active_holds(venue_id, day)
        return DayOccupancy(
            tables=tuple(tables),
            bookings=tuple(bookings),
            blocks=tuple(blocks),
            holds=tuple(holds or ()) if include_holds else (),
            default_duration=self.default_duration,
        )

    def _service_bounds(self, windows: Sequence[BookingWindowInfo]) -> List[Tuple[int, int]]:
        if windows:
            return [(w.start_minutes, w.end_minutes) for w in windows]
        return [(
            parse_time_to_minutes(self.settings.default_service_open),
            parse_time_to_minutes(self.settings.default_service_close),
        )]

    def alternative_times(
        self,
        tables: Sequence[TableInfo],
        occupancy: DayOccupancy,
        windows: Sequence[BookingWindowInfo],
        requested: int,
        duration: int,
        groups: Sequence[JoinGroupInfo] = (),
    ) -> Tuple[str, ...]:
        """
        Nearest free slots around ``requested``, scanning outwards in slot
        steps within the search radius and the service hours.

        A slot counts when one of ``tables`` or every table of one of
        ``groups`` is free for the whole duration.
        """
        bounds = self._service_bounds(windows)
        radius = self.settings.alternative_search_minutes
        found: List[int] = []

        for step in range(self.granularity, radius + 1, self.granularity):
            for candidate in (requested - step, requested + step):
                if candidate < 0 or candidate >= MINUTES_PER_DAY:
                    continue
                if not any(start <= candidate <= end for start, end in bounds):
                    continue
                taken = occupancy.unavailable_table_ids(candidate, duration)
                if any(t.id not in taken for t in tables) or any(
                    taken.isdisjoint(g.table_ids) for g in groups
                ):
                    found.append(candidate)
                if len(found) >= self.settings.max_suggested_times:
                    break
            if len(found) >= self.settings.max_suggested_times:
                break

        return tuple(minutes_to_time_str(m) for m in sorted(found))

    async def is_date_available(self, venue_id: str, booking_date: DateLike, party_size: int) -> bool:
        """True if any slot of any window applying to the date has a free table."""
        validate_party_size(party_size)
        day = parse_date(booking_date)

        key = AvailabilityCache.make_key(DATE_NAMESPACE, venue_id, party_size, day)
        cached = await self._cached(key)
        if cached is not None:
            return cached

        result = self._date_available(
            venue_id, day, party_size,
            windows=self.data_source.list_booking_windows(venue_id),
        )
        await self._store(key, result)
        return result

    def _date_available(
        self,
        venue_id: str,
        day: date,
        party_size: int,
        windows: Sequence[BookingWindowInfo],
        tables: Optional[Sequence[TableInfo]] = None,
        occupancy: Optional[DayOccupancy] = None,
    ) -> bool:
        if not windows:
            logger.info(f"Venue {venue_id} has no booking windows configured")
            return False

        windows = applicable_windows(windows, day)
        if not windows:
            return False

        if tables is None:
            tables = self.data_source.list_active_tables(venue_id, online_only=True)
        fitting = qualifying_tables(tables, party_size)
        if not fitting:
            return False

        if occupancy is None:
            occupancy = self._day_occupancy(venue_id, day, tables, include_holds=True)

        for window in windows:
            for slot in generate_time_slots(window.start_minutes, window.end_minutes, self.granularity):
                if occupancy.free_tables(fitting, slot, self.default_duration):
                    return True
        return False

    async def check_time_slot(
        self,
        venue_id: str,
        booking_date: DateLike,
        booking_time: TimeLike,
        party_size: int,
        duration_minutes: Optional[int] = None,
    ) -> AvailabilityResult:
        validate_party_size(party_size)
        duration = self._resolve_duration(duration_minutes)
        day = parse_date(booking_date)
        requested = parse_time_to_minutes(booking_time)

        key = AvailabilityCache.make_key(
            SLOT_NAMESPACE, venue_id, party_size, day, extra=(requested, duration)
        )
        cached = await self._cached(key)
        if cached is not None:
            return cached

        all_tables = self.data_source.list_active_tables(venue_id, online_only=True)
        tables = qualifying_tables(all_tables, party_size)
        if not tables:
            result = AvailabilityResult(available=False, reason=REASON_NO_TABLES)
        else:
            occupancy = self._day_occupancy(venue_id, day, all_tables, include_holds=True)
            if occupancy.free_tables(tables, requested, duration):
                result = AvailabilityResult(available=True)
            else:
                windows = applicable_windows(self.data_source.list_booking_windows(venue_id), day)
                result = AvailabilityResult(
                    available=False,
                    reason=REASON_FULLY_BOOKED,
                    suggested_times=self.alternative_times(
                        tables, occupancy, windows, requested, duration
                    ),
                )

        await self._store(key, result)
        return result

    async def find_alternative_times(
        self,
        venue_id: str,
        booking_date: DateLike,
        booking_time: TimeLike,
        party_size: int,
        duration_minutes: Optional[int] = None,
        online_only: bool = True,
    ) -> Tuple[str, ...]:
        validate_party_size(party_size)
        duration = self._resolve_duration(duration_minutes)
        day = parse_date(booking_date)
        requested = parse_time_to_minutes(booking_time)

        all_tables = self.data_source.list_active_tables(venue_id, online_only=online_only)
        tables = qualifying_tables(all_tables, party_size)
        groups: Sequence[JoinGroupInfo] = ()
        if party_size >= self.settings.large_party_threshold:
            groups = usable_join_groups(
                self.data_source.list_join_groups(venue_id), all_tables, party_size
            )
        if not tables and not groups:
            return ()
        return self.alternative_times(
            tables,
            self._day_occupancy(venue_id, day, all_tables),
            applicable_windows(self.data_source.list_booking_windows(venue_id), day),
            requested,
            duration,
            groups=groups,
        )

    async def check_availability_with_join_groups(
        self,
        venue_id: str,
        booking_date: DateLike,
        start_time: TimeLike,
        end_time: TimeLike,
        party_size: int,
        duration_minutes: Optional[int] = None,
    ) -> Dict[str, AvailabilityResult]:
        """
        Per-slot availability between two times, inclusive, preferring join
        groups over individual tables when both could seat the party.
        """
        validate_party_size(party_size)
        duration = self._resolve_duration(duration_minutes)
        day = parse_date(booking_date)
        start = parse_time_to_minutes(start_time)
        end = parse_time_to_minutes(end_time)
        if end < start:
            raise InvalidInputError("End time must not be before start time")

        key = AvailabilityCache.make_key(
            JOIN_GROUP_NAMESPACE, venue_id, party_size, day, extra=(start, end, duration)
        )
        cached = await self._cached(key)
        if cached is not None:
            return dict(cached)

        all_tables = self.data_source.list_active_tables(venue_id, online_only=False)
        groups = usable_join_groups(
            self.data_source.list_join_groups(venue_id), all_tables, party_size
        )
        tables = qualifying_tables(all_tables, party_size)
        occupancy = self._day_occupancy(venue_id, day, all_tables)

        results: Dict[str, AvailabilityResult] = {}
        for slot in generate_time_slots(start, end, self.granularity):
            occupied = occupancy.unavailable_table_ids(slot, duration)
            free_groups = [g.name for g in groups if occupied.isdisjoint(g.table_ids)]
            if free_groups:
                results[minutes_to_time_str(slot)] = AvailabilityResult(
                    available=True,
                    reason=f"Available via join groups: {', '.join(free_groups)}",
                    suggested_tables=tuple(free_groups),
                )
                continue

            free_tables = [t.label for t in tables if t.id not in occupied]
            if free_tables:
                results[minutes_to_time_str(slot)] = AvailabilityResult(
                    available=True,
                    reason=f"Available individual tables: {', '.join(free_tables)}",
                    suggested_tables=tuple(free_tables),
                )
            else:
                results[minutes_to_time_str(slot)] = AvailabilityResult(
                    available=False,
                    reason=f"No suitable tables for {party_size} guests",
                )

        await self._store(key, tuple(results.items()))
        return results

    async def get_available_dates(
        self,
        venue_id: str,
        party_size: int,
        start_date: DateLike,
        days: int = 30,
    ) -> List[str]:
        """
        Bookable dates in ``[start_date, start_date + days)``.

        Bookings are fetched once per batch of dates rather than once per
        date.
        """
        validate_party_size(party_size)
        if days <= 0:
            raise InvalidInputError("Number of days must be positive")
        first = parse_date(start_date)
        last = first + timedelta(days=days - 1)

        key = AvailabilityCache.make_key(RANGE_NAMESPACE, venue_id, party_size, first, last)
        cached = await self._cached(key)
        if cached is not None:
            return list(cached)

        windows = self.data_source.list_booking_windows(venue_id)
        if not windows:
            logger.info(f"Venue {venue_id} has no booking windows configured")
            await self._store(key, ())
            return []
        tables = self.data_source.list_active_tables(venue_id, online_only=True)

        all_dates = list(iter_dates(first, days))
        batch_size = max(1, self.settings.availability_date_batch_size)
        available: List[str] = []

        for offset in range(0, len(all_dates), batch_size):
            batch = all_dates[offset:offset + batch_size]
            bookings_by_date = self.data_source.list_active_bookings_between(
                venue_id, batch[0], batch[-1]
            )
            blocks_by_date = self.data_source.list_blocks_between(venue_id, batch[0], batch[-1])
            holds_by_date = self.data_source.list_active_holds_between(
                venue_id, batch[0], batch[-1]
            )
            for day in batch:
                occupancy = self._day_occupancy(
                    venue_id, day, tables,
                    bookings=bookings_by_date.get(day, []),
                    blocks=blocks_by_date.get(day, []),
                    holds=holds_by_date.get(day, []),
                    include_holds=True,
                )
                if self._date_available(
                    venue_id, day, party_size, windows, tables=tables, occupancy=occupancy,
                ):
                    available.append(day.isoformat())

        logger.info(
            f"Venue {venue_id}: {len(available)}/{days} dates available for party of {party_size}"
        )
        await self._store(key, tuple(available))
        return available

    async def validate_booking_request(
        self,
        venue_id: str,
        booking_date: DateLike,
        booking_time: TimeLike,
        party_size: int,
        service_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> BookingValidation:
        """Pre-booking check: inside an applicable window, then a free table."""
        validate_party_size(party_size)
        day = parse_date(booking_date)
        requested = parse_time_to_minutes(booking_time)

        windows = applicable_windows(
            self.data_source.list_booking_windows(venue_id, service_id=service_id), day
        )
        if not windows:
            return BookingValidation(valid=False, reason=REASON_NO_WINDOW)
        if not any(w.contains_time(requested) for w in windows):
            return BookingValidation(valid=False, reason=REASON_OUTSIDE_HOURS)

        result = await self.check_time_slot(venue_id, day, requested, party_size, duration_minutes)
        return BookingValidation(
            valid=result.available,
            reason=result.reason,
            suggested_times=result.suggested_times,
        )

    async def check_table_conflicts(
        self,
        venue_id: str,
        booking_date: DateLike,
        table_ids: Sequence[int],
        start_time: TimeLike,
        duration_minutes: Optional[int] = None,
    ) -> TableConflictResult:
        """Walk-in check: how long the given tables stay free from ``start_time``."""
        if not table_ids:
            raise InvalidInputError("At least one table is required")
        duration = self._resolve_duration(duration_minutes)
        day = parse_date(booking_date)
        start = parse_time_to_minutes(start_time)

        return max_available_duration(
            self.data_source.list_active_bookings(venue_id, day),
            table_ids,
            start,
            duration,
            default_duration=self.default_duration,
            blocks=self.data_source.list_blocks(venue_id, day),
        )
