# backend/modules/bookings/models/booking_models.py

"""
Booking, per-table assignment and slot hold models.
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Date, Time,
    Boolean, Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
import enum

from core.database import Base
from core.mixins import TimestampMixin, VenueScopedMixin
from core.config import get_settings
from modules.venues.models import Venue, Table  # noqa: F401  FK targets


class BookingStatus(str, enum.Enum):
    """Booking status enum"""

    CONFIRMED = "confirmed"
    SEATED = "seated"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_FAILED = "payment_failed"
    EXPIRED = "expired"
    LATE = "late"


# Bookings in these states never hold a table
NON_OCCUPYING_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.FINISHED})


def _default_duration():
    return get_settings().default_duration_minutes


class Booking(Base, TimestampMixin, VenueScopedMixin):
    """A reservation for a party at a venue"""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(String(36))

    # Primary table; join-group allocations also get assignment rows
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=True)
    is_unallocated = Column(Boolean, default=True, nullable=False)

    # Guest identity
    guest_name = Column(String(200), nullable=False)
    email = Column(String(200))
    phone = Column(String(50))

    # Reservation details
    party_size = Column(Integer, nullable=False)
    booking_date = Column(Date, nullable=False, index=True)
    booking_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, default=_default_duration)

    status = Column(SQLEnum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)

    table_assignments = relationship(
        "BookingTableAssignment",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("party_size >= 1", name="ck_bookings_party_size"),
        Index("idx_bookings_venue_date_status", "venue_id", "booking_date", "status"),
    )

    @property
    def table_ids(self):
        ids = [a.table_id for a in self.table_assignments]
        if self.table_id is not None and self.table_id not in ids:
            ids.insert(0, self.table_id)
        return ids

    def __repr__(self):
        return f"<Booking {self.id} - {self.party_size} on {self.booking_date} at {self.booking_time}>"


class BookingTableAssignment(Base):
    """One row per table a booking occupies"""

    __tablename__ = "booking_table_assignments"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=False)

    booking = relationship("Booking", back_populates="table_assignments")

    __table_args__ = (
        UniqueConstraint("booking_id", "table_id", name="uq_booking_table"),
        Index("idx_assignments_table", "table_id"),
    )


class SlotHold(Base, VenueScopedMixin):
    """Short-lived hold on a slot while a guest completes their details"""

    __tablename__ = "slot_holds"

    id = Column(Integer, primary_key=True)
    service_id = Column(String(36))
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    party_size = Column(Integer, nullable=False)

    lock_token = Column(String(36), unique=True, nullable=False, index=True)
    locked_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    released_at = Column(DateTime)
    reason = Column(String(50))  # created, extended, released, expired, booked

    __table_args__ = (
        Index("idx_slot_holds_slot", "venue_id", "booking_date", "start_time"),
    )
