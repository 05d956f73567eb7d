"""
Splitting of midnight-crossing intervals into linked records, and the inverse merge
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from clock import MINUTES_PER_DAY, end_minutes, to_minutes
from entry import END_OF_DAY, START_OF_DAY, SplitPair, TimeEntry

IdSource = Callable[[], int]


@dataclass(frozen=True)
class SplitResult:
    entries: List[TimeEntry]
    pair: Optional[SplitPair] = None

    @property
    def was_split(self) -> bool:
        return self.pair is not None


def crosses_midnight(candidate: TimeEntry) -> bool:
    if candidate.end is None:
        return False
    start = to_minutes(candidate.start)
    end = end_minutes(candidate.end)
    return not (start <= end <= MINUTES_PER_DAY)


def split_interval(candidate: TimeEntry, next_id: IdSource) -> SplitResult:
    """
    Materialize a candidate interval as one record, or as two linked records when it wraps past midnight.

    Args:
        candidate: Interval to place. Never mutated.
        next_id: Issues fresh ids for the halves of a split.

    Returns:
        SplitResult holding the candidate itself when it fits within its day, otherwise
        a first half ending at 24:00, a second half starting at 00:00 on the same stored
        date, and the SplitPair linking them.
    """
    if not crosses_midnight(candidate):
        return SplitResult(entries=[candidate])

    first_id = next_id()
    second_id = next_id()
    first = TimeEntry(id=first_id, date=candidate.date, start=candidate.start, end=END_OF_DAY)
    second = TimeEntry(id=second_id, date=candidate.date, start=START_OF_DAY, end=candidate.end)
    return SplitResult(entries=[first, second], pair=SplitPair.link(first_id, second_id))


def merge_base(first: TimeEntry, second: TimeEntry, next_id: IdSource) -> TimeEntry:
    """Rebuild the logical interval behind a split pair under a fresh id."""
    return TimeEntry(id=next_id(), date=first.date, start=first.start, end=second.end)
