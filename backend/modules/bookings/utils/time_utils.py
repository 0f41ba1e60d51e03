# backend/modules/bookings/utils/time_utils.py

"""
Pure time and calendar helpers.

Times of day are handled as integer minutes since midnight so interval
arithmetic never touches wall-clock datetimes.
"""

from datetime import date, datetime, time
from typing import Iterable, Iterator, List, Optional, Union

from core.exceptions import InvalidInputError

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

TimeLike = Union[str, time, int]
DateLike = Union[str, date]


def parse_time_to_minutes(value: TimeLike) -> int:
    """Convert "HH:MM" (or "HH:MM:SS"), a time, or minutes into minutes."""
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid time: {value!r}")
    if isinstance(value, int):
        if not 0 <= value < MINUTES_PER_DAY:
            raise InvalidInputError(f"Time out of range: {value}")
        return value
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise InvalidInputError(f"Invalid time: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidInputError(f"Invalid time format: {value!r}, expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise InvalidInputError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise InvalidInputError(f"Invalid date: {value!r}, expected YYYY-MM-DD")


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open overlap test; touching endpoints do not overlap."""
    return start_a < end_b and end_a > start_b


def generate_time_slots(
    start: TimeLike, end: TimeLike, granularity_minutes: int = 15
) -> List[int]:
    """
    Slot start times from ``start`` to ``end`` inclusive, stepping by the
    granularity. A trailing partial step past ``end`` is dropped.
    """
    if granularity_minutes <= 0:
        raise InvalidInputError("Slot granularity must be positive")
    start_minutes = parse_time_to_minutes(start)
    end_minutes = parse_time_to_minutes(end)
    return list(range(start_minutes, end_minutes + 1, granularity_minutes))


def weekday_name(value: DateLike) -> str:
    """Short lowercase weekday name, e.g. ``"tue"``."""
    return WEEKDAY_NAMES[parse_date(value).weekday()]


def is_date_in_range(
    value: DateLike, start: Optional[DateLike] = None, end: Optional[DateLike] = None
) -> bool:
    """Inclusive range test; a missing bound is open."""
    day = parse_date(value)
    if start is not None and day < parse_date(start):
        return False
    if end is not None and day > parse_date(end):
        return False
    return True


def is_date_in_blackout(value: DateLike, periods: Iterable) -> bool:
    """True if the date falls inside any blackout period (inclusive)."""
    for period in periods or ():
        if is_date_in_range(value, period.start_date, period.end_date):
            return True
    return False


def iter_dates(start: date, days: int) -> Iterator[date]:
    for offset in range(days):
        yield date.fromordinal(start.toordinal() + offset)
