"""
Wall-clock arithmetic for 5-minute quantized times of day
"""

import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from entry import END_OF_DAY, TimeEntry

MINUTES_PER_DAY = 24 * 60
LAST_SLOT_MINUTES = 23 * 60 + 55
STEP_MINUTES = 5
NO_DURATION = "-"
WEEKDAY_ABBREVIATIONS = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]


def to_minutes(value: str) -> int:
    """Minutes since midnight for an HH:MM string; 24:00 gives 1440."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def end_minutes(end: str) -> int:
    if end == END_OF_DAY:
        return MINUTES_PER_DAY
    return to_minutes(end)


def _render(total: int) -> str:
    hours, minutes = divmod(total, 60)
    return f"{hours:02d}:{minutes:02d}"


def from_minutes(total: Union[int, float]) -> str:
    clamped = max(0, min(total, LAST_SLOT_MINUTES))
    # ties round up, unlike round()
    rounded = int(math.floor(clamped / STEP_MINUTES + 0.5)) * STEP_MINUTES
    if rounded >= MINUTES_PER_DAY:
        rounded = 0
    return _render(rounded)


def adjust_time(value: str, delta_minutes: int) -> str:
    return from_minutes(to_minutes(value) + delta_minutes)


def rounded_now(now: Optional[datetime] = None) -> str:
    """Current time of day rounded to the nearest 5 minutes."""
    now = now or datetime.now()
    total = now.hour * 60 + int(math.floor(now.minute / STEP_MINUTES + 0.5)) * STEP_MINUTES
    if total >= MINUTES_PER_DAY:
        total = 0
    return _render(total)


def today() -> str:
    return date.today().isoformat()


def shift_date(day: str, days: int) -> str:
    return (date.fromisoformat(day) + timedelta(days=days)).isoformat()


def weekday_abbr(day: str) -> str:
    return WEEKDAY_ABBREVIATIONS[date.fromisoformat(day).weekday()]


def duration_minutes(start: str, end: Optional[str]) -> int:
    if not end:
        return 0
    return max(0, end_minutes(end) - to_minutes(start))


def duration(start: str, end: Optional[str] = None) -> str:
    """Elapsed time as HH:MM, or '-' for open or non-positive intervals."""
    minutes = duration_minutes(start, end)
    if minutes <= 0:
        return NO_DURATION
    return _render(minutes)


def total_duration(entries: Iterable[TimeEntry]) -> str:
    total = sum(duration_minutes(entry.start, entry.end) for entry in entries if entry.end)
    hours, minutes = divmod(total, 60)
    return f"{hours}h {minutes}m"
