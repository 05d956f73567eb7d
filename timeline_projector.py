"""
Per-day grouping and day-timeline geometry for display
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from clock import (
    MINUTES_PER_DAY,
    end_minutes,
    shift_date,
    to_minutes,
    total_duration,
    weekday_abbr,
)
from entry import TimeEntry
from split_index import SplitIndex

# The second half of a split pair is grouped two days after its first half's date.
# Its stored date is left untouched.
SECOND_HALF_DATE_OFFSET_DAYS = 2


@dataclass(frozen=True)
class TimelineBar:
    entry_id: int
    offset: float
    width: float
    is_open: bool

    @property
    def key(self) -> str:
        return f"{self.entry_id}-open" if self.is_open else str(self.entry_id)

    def scaled(self, axis_width: float) -> tuple[float, float]:
        """Offset and width against an axis of the given length."""
        return self.offset * axis_width, self.width * axis_width


@dataclass(frozen=True)
class DayGroup:
    date: str
    entries: List[TimeEntry]
    bars: List[TimelineBar] = field(default_factory=list)

    @property
    def weekday(self) -> str:
        return weekday_abbr(self.date)

    @property
    def total(self) -> str:
        return total_duration(self.entries)

    @property
    def completed(self) -> int:
        return sum(1 for entry in self.entries if entry.end)


def adjusted_date(
    entry: TimeEntry,
    split_index: SplitIndex,
    entries_by_id: Optional[Dict[int, TimeEntry]] = None,
    offset_days: int = SECOND_HALF_DATE_OFFSET_DAYS,
) -> str:
    if not split_index.is_second_half(entry.id):
        return entry.date
    base_date = entry.date
    first_id = split_index.first_half_of(entry.id)
    if entries_by_id and first_id in entries_by_id:
        base_date = entries_by_id[first_id].date
    return shift_date(base_date, offset_days)


def _now_minutes(now: Optional[datetime]) -> int:
    now = now or datetime.now()
    return now.hour * 60 + now.minute


def bar_for_entry(entry: TimeEntry, now: Optional[datetime] = None) -> Optional[TimelineBar]:
    start = to_minutes(entry.start)
    if entry.end:
        end = end_minutes(entry.end)
    else:
        end = min(_now_minutes(now), MINUTES_PER_DAY)

    clamped_start = max(0, min(start, MINUTES_PER_DAY))
    clamped_end = min(end, MINUTES_PER_DAY)
    span = clamped_end - clamped_start
    if span <= 0:
        return None
    return TimelineBar(
        entry_id=entry.id,
        offset=clamped_start / MINUTES_PER_DAY,
        width=span / MINUTES_PER_DAY,
        is_open=entry.end is None,
    )


def group_by_adjusted_date(
    entries: Sequence[TimeEntry],
    split_index: SplitIndex,
    offset_days: int = SECOND_HALF_DATE_OFFSET_DAYS,
) -> "OrderedDict[str, List[TimeEntry]]":
    """Entries bucketed by adjusted date, newest date first, latest start first within a day."""
    entries_by_id = {entry.id: entry for entry in entries}
    buckets: Dict[str, List[TimeEntry]] = {}
    for entry in entries:
        day = adjusted_date(entry, split_index, entries_by_id, offset_days)
        buckets.setdefault(day, []).append(entry)

    grouped: "OrderedDict[str, List[TimeEntry]]" = OrderedDict()
    for day in sorted(buckets, reverse=True):
        grouped[day] = sorted(buckets[day], key=lambda entry: to_minutes(entry.start), reverse=True)
    return grouped


def project_timeline(
    entries: Iterable[TimeEntry],
    split_index: SplitIndex,
    now: Optional[datetime] = None,
    offset_days: int = SECOND_HALF_DATE_OFFSET_DAYS,
) -> List[DayGroup]:
    groups: List[DayGroup] = []
    for day, day_entries in group_by_adjusted_date(list(entries), split_index, offset_days).items():
        bars = [bar for bar in (bar_for_entry(entry, now) for entry in day_entries) if bar is not None]
        groups.append(DayGroup(date=day, entries=day_entries, bars=bars))
    return groups
