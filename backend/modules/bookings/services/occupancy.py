# backend/modules/bookings/services/occupancy.py

"""
Table occupancy calculation.

Bookings occupy their tables over the half-open interval
[start, start + duration). Staff blocks take their tables, or the whole
venue when they name none, out of play over [start, end). Guest-facing
checks also count active slot holds. ``DayOccupancy`` combines the three
so every availability and allocation decision uses the same rule.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Set, Tuple

from ..models import BookingStatus, NON_OCCUPYING_STATUSES
from ..utils.time_utils import intervals_overlap, minutes_to_time_str

DEFAULT_DURATION_MINUTES = 120


def is_occupying(booking) -> bool:
    """Cancelled and finished bookings never hold a table."""
    return BookingStatus(booking.status) not in NON_OCCUPYING_STATUSES


def booking_interval(booking, default_duration: int = DEFAULT_DURATION_MINUTES) -> Tuple[int, int]:
    start = booking.start_minutes
    return start, start + (booking.duration_minutes or default_duration)


def occupied_table_ids(
    bookings: Iterable,
    candidate_time: int,
    candidate_duration: int,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> Set[int]:
    """
    Ids of tables held by an active booking whose interval overlaps
    [candidate_time, candidate_time + candidate_duration).
    """
    candidate_end = candidate_time + candidate_duration
    occupied: Set[int] = set()
    for booking in bookings:
        if not booking.table_ids or not is_occupying(booking):
            continue
        start, end = booking_interval(booking, default_duration)
        if intervals_overlap(candidate_time, candidate_end, start, end):
            occupied.update(booking.table_ids)
    return occupied


def blocked_table_ids(
    blocks: Iterable,
    candidate_time: int,
    candidate_duration: int,
    all_table_ids: Iterable[int],
) -> Set[int]:
    """
    Ids of tables covered by a block overlapping the candidate interval.
    A block without tables closes every table in ``all_table_ids``.
    """
    candidate_end = candidate_time + candidate_duration
    blocked: Set[int] = set()
    for block in blocks:
        if not intervals_overlap(candidate_time, candidate_end, block.start_minutes, block.end_minutes):
            continue
        if not block.table_ids:
            return set(all_table_ids)
        blocked.update(block.table_ids)
    return blocked


def held_table_ids(
    holds: Iterable,
    tables: Sequence,
    unavailable: Set[int],
    candidate_time: int,
    candidate_duration: int,
    hold_duration: int = DEFAULT_DURATION_MINUTES,
) -> Set[int]:
    """
    Tables that overlapping slot holds are expected to claim.

    Holds carry no tables, so each one, in start order, takes the smallest
    table not already unavailable that seats its party.
    """
    candidate_end = candidate_time + candidate_duration
    taken = set(unavailable)
    held: Set[int] = set()
    by_size = sorted(tables, key=lambda t: (t.seats, t.id))

    for hold in sorted(holds, key=lambda h: (h.start_minutes, h.id)):
        hold_end = hold.start_minutes + hold_duration
        if not intervals_overlap(candidate_time, candidate_end, hold.start_minutes, hold_end):
            continue
        for table in by_size:
            if table.id not in taken and table.seats >= hold.party_size:
                taken.add(table.id)
                held.add(table.id)
                break
    return held


@dataclass(frozen=True)
class DayOccupancy:
    """Everything that takes tables out of play at one venue on one date"""

    tables: Tuple = ()
    bookings: Tuple = ()
    blocks: Tuple = ()
    holds: Tuple = ()
    default_duration: int = DEFAULT_DURATION_MINUTES

    def unavailable_table_ids(self, candidate_time: int, candidate_duration: int) -> Set[int]:
        taken = occupied_table_ids(
            self.bookings, candidate_time, candidate_duration, self.default_duration
        )
        taken |= blocked_table_ids(
            self.blocks, candidate_time, candidate_duration, (t.id for t in self.tables)
        )
        if self.holds:
            taken |= held_table_ids(
                self.holds, self.tables, taken,
                candidate_time, candidate_duration, self.default_duration,
            )
        return taken

    def free_tables(self, tables: Sequence, candidate_time: int, candidate_duration: int) -> list:
        taken = self.unavailable_table_ids(candidate_time, candidate_duration)
        return [t for t in tables if t.id not in taken]


@dataclass(frozen=True)
class TableConflictResult:
    has_conflict: bool
    max_available_duration: int
    next_booking_time: Optional[str] = None
    conflicting_booking_id: Optional[int] = None


def max_available_duration(
    bookings: Iterable,
    table_ids: Sequence[int],
    start: int,
    requested_duration: int,
    default_duration: int = DEFAULT_DURATION_MINUTES,
    blocks: Iterable = (),
) -> TableConflictResult:
    """
    Walk-in check for a set of tables: how long the party can sit from
    ``start`` before the next booking or block on any of those tables.

    A booking or block already running at ``start`` leaves no free time at
    all. Blocks report no conflicting booking id.
    """
    wanted = set(table_ids)
    requested_end = start + requested_duration

    # (start, end, booking id) of everything that touches the wanted tables
    intervals = []
    for booking in bookings:
        if wanted.intersection(booking.table_ids) and is_occupying(booking):
            intervals.append((*booking_interval(booking, default_duration), booking.id))
    for block in blocks:
        if not block.table_ids or wanted.intersection(block.table_ids):
            intervals.append((block.start_minutes, block.end_minutes, None))

    next_start, next_id = None, None
    for interval_start, interval_end, booking_id in sorted(intervals, key=lambda i: i[0]):
        if interval_start <= start < interval_end:
            return TableConflictResult(
                has_conflict=True,
                max_available_duration=0,
                next_booking_time=minutes_to_time_str(interval_start),
                conflicting_booking_id=booking_id,
            )
        if interval_start > start and next_start is None:
            next_start, next_id = interval_start, booking_id

    if next_start is None:
        return TableConflictResult(has_conflict=False, max_available_duration=requested_duration)

    return TableConflictResult(
        has_conflict=next_start < requested_end,
        max_available_duration=min(next_start - start, requested_duration),
        next_booking_time=minutes_to_time_str(next_start),
        conflicting_booking_id=next_id,
    )
