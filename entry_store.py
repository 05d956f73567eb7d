"""
Authoritative in-memory collection of time entries and their split pairs
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import ValidationError

from entry import SplitPair, TimeEntry
from interval_split import IdSource, merge_base, split_interval
from split_index import SplitIndex
from storage import EntryRepository
from timeline_projector import SECOND_HALF_DATE_OFFSET_DAYS, adjusted_date, group_by_adjusted_date

EDITABLE_FIELDS = ("start", "end")


class EntryValidationError(ValueError):
    """Raised when an edit is rejected before anything is changed."""


class ClockSeededIdSource:
    """Monotonic integer ids seeded from wall-clock milliseconds."""

    def __init__(self, seed: Optional[int] = None):
        self._last = int(time.time() * 1000) if seed is None else seed

    def __call__(self) -> int:
        self._last += 1
        return self._last

    def ensure_above(self, value: int) -> None:
        if value > self._last:
            self._last = value


@dataclass(frozen=True)
class SaveResult:
    entries_saved: bool = True
    pairs_saved: bool = True

    @property
    def ok(self) -> bool:
        return self.entries_saved and self.pairs_saved


class EntryStore:
    def __init__(
        self,
        repository: Optional[EntryRepository] = None,
        id_source: Optional[IdSource] = None,
        second_half_offset_days: int = SECOND_HALF_DATE_OFFSET_DAYS,
        autosave: bool = True,
    ):
        self.repository = repository
        self.next_id = id_source or ClockSeededIdSource()
        self.second_half_offset_days = second_half_offset_days
        self.autosave = autosave
        self.last_save: Optional[SaveResult] = None

        entries = repository.load_entries() if repository else []
        pairs = repository.load_pairs() if repository else []
        self._entries: List[TimeEntry] = []
        self._set_entries(entries)
        self.split_index = SplitIndex(pairs)
        # pairs may name a half that is no longer stored; its id stays taken
        known_ids = {entry.id for entry in self._entries}
        for pair in pairs:
            known_ids.update(pair.member_ids)
        if known_ids and hasattr(self.next_id, "ensure_above"):
            self.next_id.ensure_above(max(known_ids))

    # Read access

    @property
    def entries(self) -> List[TimeEntry]:
        """Entries, most recently created first."""
        return list(self._entries)

    @property
    def pairs(self) -> List[SplitPair]:
        return self.split_index.pairs

    def get(self, entry_id: int) -> Optional[TimeEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def pair_for(self, entry_id: int) -> Optional[SplitPair]:
        return self.split_index.pair_for(entry_id)

    def open_entries(self) -> List[TimeEntry]:
        return [entry for entry in self._entries if entry.is_open]

    def find_open_entry(self) -> Optional[TimeEntry]:
        """The open entry an end action closes: the oldest one still open."""
        open_entries = self.open_entries()
        return open_entries[-1] if open_entries else None

    @property
    def has_open_entry(self) -> bool:
        return self.find_open_entry() is not None

    def adjusted_date(self, entry: TimeEntry) -> str:
        return adjusted_date(entry, self.split_index, self._entries_by_id(), self.second_half_offset_days)

    def list_entries_grouped_by_adjusted_date(self) -> "OrderedDict[str, List[TimeEntry]]":
        return group_by_adjusted_date(self._entries, self.split_index, self.second_half_offset_days)

    # Mutations

    def open_new(self, date: str, start: str) -> TimeEntry:
        entry = self._build(id=self.next_id(), date=date, start=start)
        self._set_entries(self._entries + [entry])
        self._after_mutation()
        return entry

    def close_open(self, entry_id: int, end: str) -> List[TimeEntry]:
        _require_value("end", end)
        original = self.get(entry_id)
        if original is None or not original.is_open:
            return []
        candidate = self._build(**{**original.model_dump(), "end": end})

        result = split_interval(candidate, self.next_id)
        self._replace({original.id}, result.entries)
        self.split_index.discard_for(original.id)
        if result.pair is not None:
            self.split_index.add(result.pair)
        self._after_mutation()
        return result.entries

    def edit_field(self, entry_id: int, field: str, value: str) -> List[TimeEntry]:
        """
        Change the start or end of an entry and reconcile its split state.

        A split pair is edited as the single interval it represents: both halves are
        merged, the field is applied, and the result is split again if it still crosses
        midnight. Every record touched gets a new id.

        Returns:
            The replacement entries, or an empty list when the id is unknown.
        """
        if field not in EDITABLE_FIELDS:
            raise EntryValidationError(f"Unknown field {field!r}; expected one of {', '.join(EDITABLE_FIELDS)}.")
        _require_value(field, value)

        original = self.get(entry_id)
        if original is None:
            return []

        pair = self.split_index.pair_for(entry_id)
        first = self.get(pair.first_id) if pair else None
        second = self.get(pair.second_id) if pair else None

        if pair is not None and first is not None and second is not None:
            base = merge_base(first, second, self.next_id)
            removed = {first.id, second.id}
        else:
            base = original.model_copy(update={"id": self.next_id()})
            removed = {original.id}
        edited = self._build(**{**base.model_dump(), field: value})

        result = split_interval(edited, self.next_id)
        self._replace(removed, result.entries)
        if pair is not None:
            self.split_index.remove(pair.id)
        if result.pair is not None:
            self.split_index.add(result.pair)
        self._after_mutation()
        return result.entries

    def delete_entry(self, entry_id: int) -> List[int]:
        """Delete an entry, or both halves of its split pair. Returns the removed ids."""
        pair = self.split_index.pair_for(entry_id)
        if pair is not None:
            doomed = set(pair.member_ids)
            self.split_index.remove(pair.id)
        elif self.get(entry_id) is not None:
            doomed = {entry_id}
        else:
            return []

        removed = [entry.id for entry in self._entries if entry.id in doomed]
        self._replace(doomed, [])
        self._after_mutation()
        return removed

    def add_fixed_entry(self, date: str, start: str = "12:00", end: str = "12:00") -> List[TimeEntry]:
        _require_value("start", start)
        _require_value("end", end)
        candidate = self._build(id=self.next_id(), date=date, start=start, end=end)
        result = split_interval(candidate, self.next_id)
        self._set_entries(self._entries + result.entries)
        if result.pair is not None:
            self.split_index.add(result.pair)
        self._after_mutation()
        return result.entries

    # Persistence

    def save(self) -> SaveResult:
        if self.repository is None:
            result = SaveResult()
        else:
            result = SaveResult(
                entries_saved=self.repository.save_entries(self._entries),
                pairs_saved=self.repository.save_pairs(self.split_index.pairs),
            )
        self.last_save = result
        return result

    # Internals

    def _build(self, **fields) -> TimeEntry:
        try:
            return TimeEntry(**fields)
        except ValidationError as e:
            problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            raise EntryValidationError(problems) from e

    def _entries_by_id(self) -> Dict[int, TimeEntry]:
        return {entry.id: entry for entry in self._entries}

    def _set_entries(self, entries: List[TimeEntry]) -> None:
        self._entries = sorted(entries, key=lambda entry: entry.id, reverse=True)

    def _replace(self, removed_ids: set, added: List[TimeEntry]) -> None:
        kept = [entry for entry in self._entries if entry.id not in removed_ids]
        self._set_entries(kept + list(added))

    def _after_mutation(self) -> None:
        if self.autosave:
            self.save()


def _require_value(field: str, value: Optional[str]) -> None:
    if not value or not value.strip():
        raise EntryValidationError(f"{field.capitalize()} time is required.")
