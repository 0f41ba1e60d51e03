from .venue_models import (
    Venue,
    Table,
    TableStatus,
    JoinGroup,
    BookingWindow,
    BookingPriority,
    PriorityItemType,
    Block,
)

__all__ = [
    "Venue",
    "Table",
    "TableStatus",
    "JoinGroup",
    "BookingWindow",
    "BookingPriority",
    "PriorityItemType",
    "Block",
]
