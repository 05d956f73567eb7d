"""
Index of split pairs keyed by member entry id
"""

from typing import Dict, Iterable, List, Optional

from rich.console import Console

from entry import SplitPair

console = Console(stderr=True)


class SplitIndex:
    """Owns the pair relations. Entries carry no reference back to their pair."""

    def __init__(self, pairs: Optional[Iterable[SplitPair]] = None):
        self._pairs: Dict[str, SplitPair] = {}
        self._pair_by_entry: Dict[int, str] = {}
        for pair in pairs or []:
            try:
                self.add(pair)
            except ValueError as err:
                console.print(f"[yellow]Skipping split pair {pair.id}: {err}[/yellow]")

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, entry_id: int) -> bool:
        return entry_id in self._pair_by_entry

    @property
    def pairs(self) -> List[SplitPair]:
        return list(self._pairs.values())

    def add(self, pair: SplitPair) -> None:
        if pair.first_id == pair.second_id:
            raise ValueError(f"pair {pair.id} links entry {pair.first_id} to itself")
        if pair.id in self._pairs:
            raise ValueError(f"pair {pair.id} is already indexed")
        for entry_id in pair.member_ids:
            if entry_id in self._pair_by_entry:
                raise ValueError(f"entry {entry_id} already belongs to pair {self._pair_by_entry[entry_id]}")
        self._pairs[pair.id] = pair
        for entry_id in pair.member_ids:
            self._pair_by_entry[entry_id] = pair.id

    def remove(self, pair_id: str) -> Optional[SplitPair]:
        pair = self._pairs.pop(pair_id, None)
        if pair is not None:
            for entry_id in pair.member_ids:
                self._pair_by_entry.pop(entry_id, None)
        return pair

    def pair_for(self, entry_id: int) -> Optional[SplitPair]:
        pair_id = self._pair_by_entry.get(entry_id)
        if pair_id is None:
            return None
        return self._pairs[pair_id]

    def discard_for(self, entry_id: int) -> Optional[SplitPair]:
        """Drop whichever pair references the entry, if any."""
        pair = self.pair_for(entry_id)
        if pair is None:
            return None
        return self.remove(pair.id)

    def is_second_half(self, entry_id: int) -> bool:
        pair = self.pair_for(entry_id)
        return pair is not None and pair.second_id == entry_id

    def first_half_of(self, entry_id: int) -> Optional[int]:
        pair = self.pair_for(entry_id)
        return pair.first_id if pair is not None else None
