# backend/modules/venues/__init__.py

from .models import (
    Venue, Table, TableStatus, JoinGroup,
    BookingWindow, BookingPriority, PriorityItemType, Block,
)

__all__ = [
    "Venue", "Table", "TableStatus", "JoinGroup",
    "BookingWindow", "BookingPriority", "PriorityItemType", "Block",
]
