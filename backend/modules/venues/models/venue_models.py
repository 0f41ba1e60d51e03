# backend/modules/venues/models/venue_models.py

"""
Venue configuration: tables, join groups, booking windows and priorities.

These rows are maintained by staff tooling; the booking flow only reads them.
"""

from sqlalchemy import (
    Column, Integer, String, Date, Time, Boolean, JSON,
    Enum as SQLEnum, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from enum import Enum

from core.database import Base
from core.mixins import TimestampMixin, VenueScopedMixin


class TableStatus(str, Enum):
    """Whether a table is in service"""

    ACTIVE = "active"
    INACTIVE = "inactive"


class PriorityItemType(str, Enum):
    """Target of a booking priority rule"""

    TABLE = "table"
    GROUP = "group"


class Venue(Base, TimestampMixin):
    """A restaurant taking bookings"""

    __tablename__ = "venues"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    tables = relationship("Table", back_populates="venue")

    def __repr__(self):
        return f"<Venue {self.slug}>"


class Table(Base, TimestampMixin, VenueScopedMixin):
    """A physical seating unit"""

    __tablename__ = "tables"

    id = Column(Integer, primary_key=True)
    label = Column(String(50), nullable=False)
    seats = Column(Integer, nullable=False)
    status = Column(SQLEnum(TableStatus), default=TableStatus.ACTIVE, nullable=False)
    online_bookable = Column(Boolean, default=True, nullable=False)
    priority_rank = Column(Integer, default=0, nullable=False)  # Lower is preferred

    venue = relationship("Venue", back_populates="tables")

    __table_args__ = (
        CheckConstraint("seats > 0", name="ck_tables_seats_positive"),
        Index("idx_tables_venue_status", "venue_id", "status"),
    )

    def __repr__(self):
        return f"<Table {self.label} ({self.seats} seats)>"


class JoinGroup(Base, TimestampMixin, VenueScopedMixin):
    """Tables that can be pushed together for a larger party"""

    __tablename__ = "join_groups"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    table_ids = Column(JSON, nullable=False, default=list)
    min_party_size = Column(Integer, nullable=False)
    max_party_size = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "min_party_size <= max_party_size", name="ck_join_groups_party_range"
        ),
    )


class BookingWindow(Base, TimestampMixin, VenueScopedMixin):
    """Recurring schedule during which a service accepts bookings"""

    __tablename__ = "booking_windows"

    id = Column(Integer, primary_key=True)
    service_id = Column(String(36), index=True)
    days = Column(JSON, nullable=False, default=list)  # ["mon", "tue", ...]
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)  # Last bookable start time

    # Optional validity range
    start_date = Column(Date)
    end_date = Column(Date)

    # [{"start_date": "2025-12-24", "end_date": "2025-12-26", "reason": "Closed"}]
    blackout_periods = Column(JSON, default=list)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_booking_windows_time_range"),
    )


class BookingPriority(Base, TimestampMixin, VenueScopedMixin):
    """Staff preference for seating a given party size"""

    __tablename__ = "booking_priorities"

    id = Column(Integer, primary_key=True)
    party_size = Column(Integer, nullable=False)
    item_type = Column(SQLEnum(PriorityItemType), nullable=False)
    item_id = Column(Integer, nullable=False)
    priority_rank = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_booking_priorities_venue_party", "venue_id", "party_size"),
    )


class Block(Base, TimestampMixin, VenueScopedMixin):
    """Staff-set time range on one date during which tables cannot be booked"""

    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True)
    block_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    # Empty means the whole venue is blocked
    table_ids = Column(JSON, nullable=False, default=list)
    reason = Column(String(200))

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_blocks_time_range"),
        Index("idx_blocks_venue_date", "venue_id", "block_date"),
    )

    def __repr__(self):
        return f"<Block {self.block_date} {self.start_time}-{self.end_time}>"
