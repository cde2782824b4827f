"""
Progress ledger storage.

Holds every logged ProgressEntry and persists the full list under one key
of the key-value store.  Every mutation is persisted before it returns;
if persisting fails the in-memory ledger is rolled back and a
LedgerWriteError is raised so the caller can retry.
"""

import dataclasses
from datetime import date, datetime
from typing import Any, Callable

from loguru import logger

from ..core.config import LEDGER_KEY
from ..core.errors import LedgerWriteError, RecordNotFoundError, StorageError
from ..core.models import ProgressEntry
from .kv_store import KeyValueStore
from .serializers import ValidationError, dict_to_progress_entry, progress_entry_to_dict

# Fields that identify an entry and may not be changed by update()
_IMMUTABLE_FIELDS = frozenset({"entry_id", "created_at", "updated_at"})
_ENTRY_FIELDS = frozenset(f.name for f in dataclasses.fields(ProgressEntry))


class ProgressLedger:
    """Append/update/delete log of dated, typed progress entries."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = LEDGER_KEY,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.key = key
        self._now = now
        self._entries: list[ProgressEntry] = self._load()

    def _load(self) -> list[ProgressEntry]:
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            logger.error("Failed to load progress ledger: {}", e)
            return []
        if not raw:
            return []

        entries: list[ProgressEntry] = []
        for item in raw:
            try:
                entries.append(dict_to_progress_entry(item))
            except ValidationError as e:
                logger.warning("Skipping invalid ledger entry: {}", e)
        return entries

    def _commit(self, entries: list[ProgressEntry], action: str) -> None:
        """Persist ``entries`` and adopt them; keep the old state on failure."""
        payload: list[dict[str, Any]] = [progress_entry_to_dict(e) for e in entries]
        try:
            self.store.set(self.key, payload)
        except StorageError as e:
            logger.exception("Failed to {} ledger entry", action)
            raise LedgerWriteError(f"Could not save progress entry: {e}") from e
        self._entries = entries

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def append(self, entry: ProgressEntry) -> ProgressEntry:
        """
        Append an entry and persist the ledger.

        Raises:
            ValueError: If an entry with the same id already exists
            LedgerWriteError: If the ledger could not be saved
        """
        if any(e.entry_id == entry.entry_id for e in self._entries):
            raise ValueError(f"Duplicate ledger entry id: {entry.entry_id}")
        self._commit(self._entries + [entry], "append")
        return entry

    def update(self, entry_id: str, /, **changes: Any) -> ProgressEntry:
        """
        Replace fields of an existing entry and stamp ``updated_at``.

        Raises:
            RecordNotFoundError: If no entry has this id
            ValueError: If a change is invalid or targets an identity field
            LedgerWriteError: If the ledger could not be saved
        """
        blocked = _IMMUTABLE_FIELDS & set(changes)
        if blocked:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(blocked))}")
        unknown = set(changes) - _ENTRY_FIELDS
        if unknown:
            raise ValueError(f"Unknown entry fields: {', '.join(sorted(unknown))}")

        index = self._index_of(entry_id)
        try:
            updated = dataclasses.replace(
                self._entries[index],
                **changes,
                updated_at=self._now().isoformat(),
            )
        except TypeError as e:
            raise ValueError(f"Invalid change to entry {entry_id}: {e}") from e
        entries = list(self._entries)
        entries[index] = updated
        self._commit(entries, "update")
        return updated

    def delete(self, entry_id: str) -> ProgressEntry:
        """
        Remove an entry by id.

        Raises:
            RecordNotFoundError: If no entry has this id
            LedgerWriteError: If the ledger could not be saved
        """
        index = self._index_of(entry_id)
        entries = list(self._entries)
        removed = entries.pop(index)
        self._commit(entries, "delete")
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _index_of(self, entry_id: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.entry_id == entry_id:
                return i
        raise RecordNotFoundError(f"Progress entry not found: {entry_id}")

    def get(self, entry_id: str) -> ProgressEntry:
        return self._entries[self._index_of(entry_id)]

    def all(self) -> list[ProgressEntry]:
        """All entries in insertion order."""
        return list(self._entries)

    def query(self, start: date | None = None, end: date | None = None) -> list[ProgressEntry]:
        """
        Entries dated within [start, end] (both inclusive, either open).

        Returns:
            Matching entries, newest logged first
        """
        entries = self._entries
        if start is not None:
            start_iso = start.isoformat()
            entries = [e for e in entries if e.date >= start_iso]
        if end is not None:
            end_iso = end.isoformat()
            entries = [e for e in entries if e.date <= end_iso]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    def for_week(self, week: int) -> list[ProgressEntry]:
        """Entries tagged with the given program week, in insertion order."""
        return [e for e in self._entries if e.week == week]

    def __len__(self) -> int:
        return len(self._entries)
