"""
Pending start/end edit for a single entry
"""

from enum import Enum
from typing import Callable, List, Optional

from clock import STEP_MINUTES, adjust_time, rounded_now
from entry import START_OF_DAY, TimeEntry
from entry_store import EntryStore


class EditMode(str, Enum):
    NONE = "none"
    START = "start"
    END = "end"


class EditSession:
    """Idle -> editing start|end -> idle. Only save() touches the store."""

    def __init__(self, store: EntryStore, now: Callable[[], str] = rounded_now):
        self.store = store
        self._now = now
        self.entry_id: Optional[int] = None
        self.mode = EditMode.NONE
        self.value = ""

    @property
    def is_active(self) -> bool:
        return self.mode is not EditMode.NONE

    def begin(self, entry_id: int, mode: EditMode) -> str:
        mode = EditMode(mode)
        if mode is EditMode.NONE:
            raise ValueError("Choose start or end to edit.")
        entry = self.store.get(entry_id)
        current = getattr(entry, mode.value) if entry is not None else None
        self.entry_id = entry_id
        self.mode = mode
        self.value = current or self._now()
        return self.value

    def step(self, delta_minutes: int = STEP_MINUTES) -> str:
        self.value = adjust_time(self.value or START_OF_DAY, delta_minutes)
        return self.value

    def set_value(self, value: str) -> None:
        self.value = value.strip()

    def save(self) -> List[TimeEntry]:
        """Apply the pending value. A rejected value leaves the session editing."""
        if not self.is_active:
            return []
        replacements = self.store.edit_field(self.entry_id, self.mode.value, self.value)
        self.cancel()
        return replacements

    def cancel(self) -> None:
        self.entry_id = None
        self.mode = EditMode.NONE
        self.value = ""
