# backend/modules/bookings/tests/test_time_utils.py

"""
Tests for time and calendar helpers.
"""

import pytest
from datetime import date, datetime, time

from core.exceptions import InvalidInputError
from ..services.data_access import BlackoutPeriod
from ..utils.time_utils import (
    generate_time_slots,
    intervals_overlap,
    is_date_in_blackout,
    is_date_in_range,
    iter_dates,
    minutes_to_time_str,
    parse_date,
    parse_time_to_minutes,
    weekday_name,
)


class TestParsing:

    @pytest.mark.parametrize(
        "value,expected",
        [("19:00", 1140), ("07:05", 425), ("19:00:00", 1140), (time(18, 30), 1110), (0, 0)],
    )
    def test_parse_time_to_minutes(self, value, expected):
        assert parse_time_to_minutes(value) == expected

    @pytest.mark.parametrize("value", ["7pm", "24:00", "12:60", "", "12", None, 1440, True])
    def test_parse_time_rejects_malformed(self, value):
        with pytest.raises(InvalidInputError):
            parse_time_to_minutes(value)

    def test_minutes_to_time_str_pads(self):
        assert minutes_to_time_str(545) == "09:05"
        assert minutes_to_time_str(1260) == "21:00"

    def test_parse_date(self):
        assert parse_date("2025-06-01") == date(2025, 6, 1)
        assert parse_date(datetime(2025, 6, 1, 19, 0)) == date(2025, 6, 1)

    def test_parse_date_rejects_malformed(self):
        with pytest.raises(InvalidInputError):
            parse_date("01/06/2025")


class TestIntervals:

    def test_overlapping_intervals(self):
        assert intervals_overlap(1140, 1260, 1110, 1230)

    def test_touching_intervals_do_not_overlap(self):
        # 17:00-19:00 and 19:00-21:00
        assert not intervals_overlap(1020, 1140, 1140, 1260)
        assert not intervals_overlap(1140, 1260, 1020, 1140)

    def test_contained_interval_overlaps(self):
        assert intervals_overlap(1140, 1170, 1080, 1260)


class TestSlots:

    def test_slots_include_both_ends(self):
        slots = generate_time_slots("17:00", "18:00", 15)
        assert [minutes_to_time_str(s) for s in slots] == [
            "17:00", "17:15", "17:30", "17:45", "18:00",
        ]

    def test_trailing_partial_slot_is_dropped(self):
        slots = generate_time_slots("17:00", "17:40", 15)
        assert slots[-1] == parse_time_to_minutes("17:30")

    def test_granularity_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            generate_time_slots("17:00", "18:00", 0)


class TestCalendar:

    def test_weekday_name(self):
        assert weekday_name(date(2025, 6, 1)) == "sun"
        assert weekday_name("2025-06-03") == "tue"

    def test_date_in_range_is_inclusive_with_open_bounds(self):
        assert is_date_in_range(date(2025, 6, 1), date(2025, 6, 1), date(2025, 6, 30))
        assert is_date_in_range(date(2025, 6, 30), None, date(2025, 6, 30))
        assert is_date_in_range(date(2030, 1, 1), date(2025, 6, 1), None)
        assert not is_date_in_range(date(2025, 5, 31), date(2025, 6, 1), None)

    def test_date_in_blackout(self):
        periods = [BlackoutPeriod(start_date=date(2025, 12, 24), end_date=date(2025, 12, 26))]
        assert is_date_in_blackout(date(2025, 12, 24), periods)
        assert is_date_in_blackout(date(2025, 12, 26), periods)
        assert not is_date_in_blackout(date(2025, 12, 27), periods)
        assert not is_date_in_blackout(date(2025, 12, 25), [])

    def test_iter_dates_crosses_month_end(self):
        assert list(iter_dates(date(2025, 6, 29), 3)) == [
            date(2025, 6, 29), date(2025, 6, 30), date(2025, 7, 1),
        ]
