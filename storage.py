"""
Key-value persistence for time entries and split pairs
"""

import json
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError
from rich.console import Console

from entry import SplitPair, TimeEntry

console = Console(stderr=True)

ENTRIES_KEY = "time_entries"
SPLITS_KEY = "split_pairs"

ModelT = TypeVar("ModelT", bound=BaseModel)


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...


class InMemoryStore:
    """Dict-backed store, mostly for tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self.values: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self.values.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.values[key] = value


class JsonFileStore:
    """One JSON file per key inside a state directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_name}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_bytes(value)
        os.replace(tmp_path, path)


class EntryRepository:
    """Reads and writes the two persisted collections through a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load_raw(self, key: str) -> Optional[list]:
        try:
            raw = self.store.get(key)
        except OSError as e:
            console.print(f"[yellow]Could not read {key}: {e}[/yellow]")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            console.print(f"[yellow]Ignoring unreadable {key}: {e}[/yellow]")
            return None

    def _load_records(self, key: str, model: Type[ModelT]) -> List[ModelT]:
        raw = self._load_raw(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            console.print(f"[yellow]Ignoring {key}: expected a JSON array[/yellow]")
            return []

        records: List[ModelT] = []
        for position, item in enumerate(raw):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                console.print(f"[yellow]Skipping record {position} of {key}: {e.error_count()} error(s)[/yellow]")
        return records

    def load_entries(self) -> List[TimeEntry]:
        return self._load_records(ENTRIES_KEY, TimeEntry)

    def load_pairs(self) -> List[SplitPair]:
        return self._load_records(SPLITS_KEY, SplitPair)

    def _save_raw(self, key: str, payload: list) -> bool:
        try:
            self.store.set(key, json.dumps(payload).encode("utf-8"))
        except (OSError, TypeError, ValueError) as e:
            console.print(f"[red]Error saving {key}: {e}[/red]")
            return False
        return True

    def save_entries(self, entries: List[TimeEntry]) -> bool:
        return self._save_raw(ENTRIES_KEY, [entry.model_dump(exclude_none=True) for entry in entries])

    def save_pairs(self, pairs: List[SplitPair]) -> bool:
        return self._save_raw(SPLITS_KEY, [pair.model_dump(by_alias=True) for pair in pairs])
