from datetime import datetime

import pytest

from clock import (
    adjust_time,
    duration,
    from_minutes,
    rounded_now,
    shift_date,
    to_minutes,
    total_duration,
    weekday_abbr,
)
from entry import TimeEntry


def test_to_minutes_parses_clock_strings():
    assert to_minutes("00:00") == 0
    assert to_minutes("09:35") == 575
    assert to_minutes("24:00") == 1440


@pytest.mark.parametrize(
    "total, expected",
    [
        (1450, "23:55"),
        (-5, "00:00"),
        (0, "00:00"),
        (12, "00:10"),
        (13, "00:15"),
        (12.5, "00:15"),
        (1434, "23:55"),
        (605, "10:05"),
    ],
)
def test_from_minutes_clamps_and_rounds(total, expected):
    assert from_minutes(total) == expected


def test_adjust_time_steps_within_the_day():
    assert adjust_time("09:00", 5) == "09:05"
    assert adjust_time("00:00", -5) == "00:00"
    assert adjust_time("23:55", 5) == "23:55"
    assert adjust_time("24:00", -5) == "23:55"


def test_duration_cases():
    assert duration("09:00", "17:30") == "08:30"
    assert duration("23:00", "24:00") == "01:00"
    assert duration("00:00", "24:00") == "24:00"
    assert duration("09:00", None) == "-"
    assert duration("09:00") == "-"
    assert duration("10:00", "09:00") == "-"
    assert duration("12:00", "12:00") == "-"


def test_total_duration_ignores_open_entries():
    entries = [
        TimeEntry(id=1, date="2026-03-02", start="08:00", end="12:15"),
        TimeEntry(id=2, date="2026-03-02", start="13:00", end="14:00"),
        TimeEntry(id=3, date="2026-03-02", start="15:00"),
    ]
    assert total_duration(entries) == "5h 15m"
    assert total_duration([]) == "0h 0m"


def test_rounded_now_rounds_to_five_minutes():
    assert rounded_now(datetime(2026, 3, 2, 9, 12)) == "09:10"
    assert rounded_now(datetime(2026, 3, 2, 9, 13)) == "09:15"
    assert rounded_now(datetime(2026, 3, 2, 9, 58)) == "10:00"
    assert rounded_now(datetime(2026, 3, 2, 23, 58)) == "00:00"


def test_date_helpers():
    assert shift_date("2026-02-27", 2) == "2026-03-01"
    assert shift_date("2026-12-31", 1) == "2027-01-01"
    assert weekday_abbr("2026-03-02") == "MO"
    assert weekday_abbr("2026-03-08") == "SU"
