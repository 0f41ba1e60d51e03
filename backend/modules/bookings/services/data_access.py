# backend/modules/bookings/services/data_access.py

"""
Data access for the availability and allocation engine.

The engine works on the immutable snapshots defined here, never on ORM
rows, so every decision is made against one consistent read of the store.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.config import Settings, get_settings
from core.exceptions import AllocationConflictError, DataAccessError, NotFoundError
from modules.venues.models import (
    Block, Table, TableStatus, JoinGroup, BookingWindow, BookingPriority, PriorityItemType,
)
from ..models import (
    Booking, BookingStatus, BookingTableAssignment, SlotHold, NON_OCCUPYING_STATUSES,
)
from ..utils.time_utils import (
    is_date_in_blackout, is_date_in_range, parse_date, parse_time_to_minutes, weekday_name,
)
from .occupancy import blocked_table_ids, occupied_table_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableInfo:
    id: int
    venue_id: str
    label: str
    seats: int
    status: str = TableStatus.ACTIVE.value
    online_bookable: bool = True
    priority_rank: int = 0


@dataclass(frozen=True)
class JoinGroupInfo:
    id: int
    venue_id: str
    name: str
    table_ids: Tuple[int, ...]
    min_party_size: int
    max_party_size: int

    def fits(self, party_size: int) -> bool:
        return self.min_party_size <= party_size <= self.max_party_size


@dataclass(frozen=True)
class BlackoutPeriod:
    start_date: date
    end_date: date
    reason: Optional[str] = None


@dataclass(frozen=True)
class BookingWindowInfo:
    id: int
    venue_id: str
    service_id: Optional[str]
    days: FrozenSet[str]
    start_minutes: int
    end_minutes: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    blackout_periods: Tuple[BlackoutPeriod, ...] = ()

    def applies_to(self, day: date) -> bool:
        """Weekday listed, inside validity range, and not blacked out."""
        return (
            weekday_name(day) in self.days
            and is_date_in_range(day, self.start_date, self.end_date)
            and not is_date_in_blackout(day, self.blackout_periods)
        )

    def contains_time(self, minutes: int) -> bool:
        return self.start_minutes <= minutes <= self.end_minutes


@dataclass(frozen=True)
class BookingSlot:
    id: int
    venue_id: str
    booking_date: date
    start_minutes: int
    party_size: int
    status: str
    duration_minutes: Optional[int] = None
    table_ids: Tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PriorityRule:
    id: int
    party_size: int
    item_type: str
    item_id: int
    priority_rank: int


@dataclass(frozen=True)
class BlockInfo:
    id: int
    venue_id: str
    block_date: date
    start_minutes: int
    end_minutes: int
    # Empty means every table
    table_ids: Tuple[int, ...] = ()
    reason: Optional[str] = None


@dataclass(frozen=True)
class HoldInfo:
    id: int
    venue_id: str
    booking_date: date
    start_minutes: int
    party_size: int
    service_id: Optional[str] = None


class AvailabilityDataSource(ABC):
    """Query shapes the engine needs from the store"""

    @abstractmethod
    def list_active_tables(self, venue_id: str, online_only: bool = True) -> List[TableInfo]:
        ...

    @abstractmethod
    def list_join_groups(self, venue_id: str) -> List[JoinGroupInfo]:
        ...

    @abstractmethod
    def list_booking_windows(
        self, venue_id: str, service_id: Optional[str] = None
    ) -> List[BookingWindowInfo]:
        ...

    @abstractmethod
    def list_active_bookings(self, venue_id: str, booking_date: date) -> List[BookingSlot]:
        ...

    @abstractmethod
    def list_active_bookings_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[BookingSlot]]:
        ...

    @abstractmethod
    def list_blocks(self, venue_id: str, block_date: date) -> List[BlockInfo]:
        ...

    @abstractmethod
    def list_blocks_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[BlockInfo]]:
        ...

    @abstractmethod
    def list_active_holds(self, venue_id: str, booking_date: date) -> List[HoldInfo]:
        ...

    @abstractmethod
    def list_active_holds_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[HoldInfo]]:
        ...

    @abstractmethod
    def list_priorities(self, venue_id: str, party_size: int) -> List[PriorityRule]:
        ...

    @abstractmethod
    def get_booking(self, booking_id: int) -> Optional[BookingSlot]:
        ...

    @abstractmethod
    def write_booking_allocation(
        self, booking_id: int, table_ids: Optional[Sequence[int]], is_unallocated: bool
    ) -> None:
        ...


def _to_blackouts(raw) -> Tuple[BlackoutPeriod, ...]:
    periods = []
    for entry in raw or []:
        periods.append(
            BlackoutPeriod(
                start_date=parse_date(entry["start_date"]),
                end_date=parse_date(entry.get("end_date") or entry["start_date"]),
                reason=entry.get("reason"),
            )
        )
    return tuple(periods)


def _to_booking_slot(booking: Booking) -> BookingSlot:
    return BookingSlot(
        id=booking.id,
        venue_id=booking.venue_id,
        booking_date=booking.booking_date,
        start_minutes=parse_time_to_minutes(booking.booking_time),
        party_size=booking.party_size,
        status=BookingStatus(booking.status).value,
        duration_minutes=booking.duration_minutes,
        table_ids=tuple(booking.table_ids),
    )


def _to_block_info(block: Block) -> BlockInfo:
    return BlockInfo(
        id=block.id,
        venue_id=block.venue_id,
        block_date=block.block_date,
        start_minutes=parse_time_to_minutes(block.start_time),
        end_minutes=parse_time_to_minutes(block.end_time),
        table_ids=tuple(block.table_ids or ()),
        reason=block.reason,
    )


def _to_hold_info(hold: SlotHold) -> HoldInfo:
    return HoldInfo(
        id=hold.id,
        venue_id=hold.venue_id,
        booking_date=hold.booking_date,
        start_minutes=parse_time_to_minutes(hold.start_time),
        party_size=hold.party_size,
        service_id=hold.service_id,
    )


class SQLAlchemyAvailabilityRepository(AvailabilityDataSource):
    """Reads venue configuration and bookings through a SQLAlchemy session"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    @contextmanager
    def _guard(self, operation: str, **context):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Data access failure during {operation} {context}: {e}")
            raise DataAccessError(operation=operation, context=context) from e

    def list_active_tables(self, venue_id: str, online_only: bool = True) -> List[TableInfo]:
        with self._guard("list_active_tables", venue_id=venue_id):
            query = self.db.query(Table).filter(
                Table.venue_id == venue_id,
                Table.status == TableStatus.ACTIVE,
            )
            if online_only:
                query = query.filter(Table.online_bookable.is_(True))
            rows = query.order_by(Table.priority_rank, Table.id).all()

        return [
            TableInfo(
                id=t.id,
                venue_id=t.venue_id,
                label=t.label,
                seats=t.seats,
                status=TableStatus(t.status).value,
                online_bookable=bool(t.online_bookable),
                priority_rank=t.priority_rank or 0,
            )
            for t in rows
        ]

    def list_join_groups(self, venue_id: str) -> List[JoinGroupInfo]:
        with self._guard("list_join_groups", venue_id=venue_id):
            rows = (
                self.db.query(JoinGroup)
                .filter(JoinGroup.venue_id == venue_id)
                .order_by(JoinGroup.id)
                .all()
            )

        return [
            JoinGroupInfo(
                id=g.id,
                venue_id=g.venue_id,
                name=g.name,
                table_ids=tuple(g.table_ids or ()),
                min_party_size=g.min_party_size,
                max_party_size=g.max_party_size,
            )
            for g in rows
        ]

    def list_booking_windows(
        self, venue_id: str, service_id: Optional[str] = None
    ) -> List[BookingWindowInfo]:
        with self._guard("list_booking_windows", venue_id=venue_id, service_id=service_id):
            query = self.db.query(BookingWindow).filter(BookingWindow.venue_id == venue_id)
            if service_id is not None:
                query = query.filter(BookingWindow.service_id == service_id)
            rows = query.order_by(BookingWindow.start_time, BookingWindow.id).all()

        return [
            BookingWindowInfo(
                id=w.id,
                venue_id=w.venue_id,
                service_id=w.service_id,
                days=frozenset(d.lower()[:3] for d in (w.days or [])),
                start_minutes=parse_time_to_minutes(w.start_time),
                end_minutes=parse_time_to_minutes(w.end_time),
                start_date=w.start_date,
                end_date=w.end_date,
                blackout_periods=_to_blackouts(w.blackout_periods),
            )
            for w in rows
        ]

    def _active_bookings_query(self, venue_id: str):
        return (
            self.db.query(Booking)
            .options(selectinload(Booking.table_assignments))
            .filter(
                Booking.venue_id == venue_id,
                Booking.status.notin_(list(NON_OCCUPYING_STATUSES)),
            )
        )

    def list_active_bookings(self, venue_id: str, booking_date: date) -> List[BookingSlot]:
        with self._guard("list_active_bookings", venue_id=venue_id, date=str(booking_date)):
            rows = (
                self._active_bookings_query(venue_id)
                .filter(Booking.booking_date == booking_date)
                .order_by(Booking.booking_time, Booking.id)
                .all()
            )
            return [_to_booking_slot(b) for b in rows]

    def list_active_bookings_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[BookingSlot]]:
        with self._guard(
            "list_active_bookings_between",
            venue_id=venue_id, start=str(start_date), end=str(end_date),
        ):
            rows = (
                self._active_bookings_query(venue_id)
                .filter(
                    Booking.booking_date >= start_date,
                    Booking.booking_date <= end_date,
                )
                .order_by(Booking.booking_date, Booking.booking_time)
                .all()
            )
            by_date: Dict[date, List[BookingSlot]] = {}
            for booking in rows:
                by_date.setdefault(booking.booking_date, []).append(_to_booking_slot(booking))
            return by_date

    def list_blocks(self, venue_id: str, block_date: date) -> List[BlockInfo]:
        return self.list_blocks_between(venue_id, block_date, block_date).get(block_date, [])

    def list_blocks_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[BlockInfo]]:
        with self._guard(
            "list_blocks_between", venue_id=venue_id, start=str(start_date), end=str(end_date),
        ):
            rows = (
                self.db.query(Block)
                .filter(
                    Block.venue_id == venue_id,
                    Block.block_date >= start_date,
                    Block.block_date <= end_date,
                )
                .order_by(Block.block_date, Block.start_time, Block.id)
                .all()
            )
            by_date: Dict[date, List[BlockInfo]] = {}
            for block in rows:
                by_date.setdefault(block.block_date, []).append(_to_block_info(block))
            return by_date

    def list_active_holds(self, venue_id: str, booking_date: date) -> List[HoldInfo]:
        return self.list_active_holds_between(venue_id, booking_date, booking_date).get(booking_date, [])

    def list_active_holds_between(
        self, venue_id: str, start_date: date, end_date: date
    ) -> Dict[date, List[HoldInfo]]:
        """Holds neither released nor lapsed, grouped by date."""
        now = datetime.utcnow()
        with self._guard(
            "list_active_holds_between", venue_id=venue_id, start=str(start_date), end=str(end_date),
        ):
            rows = (
                self.db.query(SlotHold)
                .filter(
                    SlotHold.venue_id == venue_id,
                    SlotHold.booking_date >= start_date,
                    SlotHold.booking_date <= end_date,
                    SlotHold.released_at.is_(None),
                    SlotHold.expires_at > now,
                )
                .order_by(SlotHold.booking_date, SlotHold.start_time, SlotHold.id)
                .all()
            )
            by_date: Dict[date, List[HoldInfo]] = {}
            for hold in rows:
                by_date.setdefault(hold.booking_date, []).append(_to_hold_info(hold))
            return by_date

    def list_priorities(self, venue_id: str, party_size: int) -> List[PriorityRule]:
        with self._guard("list_priorities", venue_id=venue_id, party_size=party_size):
            rows = (
                self.db.query(BookingPriority)
                .filter(
                    BookingPriority.venue_id == venue_id,
                    BookingPriority.party_size == party_size,
                )
                .order_by(BookingPriority.priority_rank, BookingPriority.id)
                .all()
            )

        return [
            PriorityRule(
                id=p.id,
                party_size=p.party_size,
                item_type=PriorityItemType(p.item_type).value,
                item_id=p.item_id,
                priority_rank=p.priority_rank,
            )
            for p in rows
        ]

    def get_booking(self, booking_id: int) -> Optional[BookingSlot]:
        with self._guard("get_booking", booking_id=booking_id):
            booking = (
                self.db.query(Booking)
                .options(selectinload(Booking.table_assignments))
                .filter(Booking.id == booking_id)
                .first()
            )
            return _to_booking_slot(booking) if booking else None

    def write_booking_allocation(
        self, booking_id: int, table_ids: Optional[Sequence[int]], is_unallocated: bool
    ) -> None:
        """
        Persist an allocation, refusing it if another active booking or a
        block already covers one of the tables for an overlapping interval.
        """
        with self._guard("write_booking_allocation", booking_id=booking_id):
            booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
            if not booking:
                raise NotFoundError(f"Booking {booking_id} not found")

            table_ids = list(table_ids or [])
            if table_ids:
                others = [
                    b for b in self.list_active_bookings(booking.venue_id, booking.booking_date)
                    if b.id != booking_id
                ]
                start = parse_time_to_minutes(booking.booking_time)
                duration = booking.duration_minutes or self.settings.default_duration_minutes
                occupied = occupied_table_ids(
                    others, start, duration,
                    default_duration=self.settings.default_duration_minutes,
                )
                occupied |= blocked_table_ids(
                    self.list_blocks(booking.venue_id, booking.booking_date),
                    start, duration, table_ids,
                )
                clash = occupied.intersection(table_ids)
                if clash:
                    self.db.rollback()
                    logger.warning(
                        f"Allocation conflict for booking {booking_id} on tables {sorted(clash)}"
                    )
                    raise AllocationConflictError(
                        f"Tables {sorted(clash)} are taken by another booking or a block"
                    )

            booking.table_id = table_ids[0] if table_ids else None
            booking.is_unallocated = is_unallocated
            # Keep unchanged rows so the (booking, table) uniqueness holds mid-flush
            kept = [a for a in booking.table_assignments if a.table_id in table_ids]
            kept_ids = {a.table_id for a in kept}
            booking.table_assignments = kept + [
                BookingTableAssignment(table_id=table_id)
                for table_id in table_ids if table_id not in kept_ids
            ]
            booking.updated_at = datetime.utcnow()
            self.db.commit()

        logger.info(
            f"Booking {booking_id} allocation written: tables={table_ids or None}, "
            f"unallocated={is_unallocated}"
        )
