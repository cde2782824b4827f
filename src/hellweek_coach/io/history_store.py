"""
Session history storage.

Completed and stopped sessions are kept newest-first and capped at a
retention limit; the whole list is persisted under one key of the
key-value store.
"""

from datetime import datetime, timedelta

from loguru import logger

from ..core.config import HISTORY_KEY, HISTORY_RECENT_DAYS, HISTORY_RETENTION
from ..core.errors import RecordNotFoundError, StorageError
from ..core.models import HistoryRecord, HistoryStats
from .kv_store import KeyValueStore
from .serializers import ValidationError, dict_to_history_record, history_record_to_dict


class SessionHistoryStore:
    """
    Append-only, newest-first log of finished sessions.

    The only way records leave the store is eviction past the retention cap.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = HISTORY_KEY,
        retention: int = HISTORY_RETENTION,
    ):
        """
        Initialize the history store and load persisted records.

        Args:
            store: Key-value persistence backend
            key: Storage key for the history list
            retention: Maximum number of records kept
        """
        if retention < 1:
            raise ValueError("retention must be at least 1")
        self.store = store
        self.key = key
        self.retention = retention
        self._records: list[HistoryRecord] = self._load()

    def _load(self) -> list[HistoryRecord]:
        """Load persisted history; an unreadable store starts empty."""
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            logger.error("Failed to load session history: {}", e)
            return []
        if not raw:
            return []

        records: list[HistoryRecord] = []
        for item in raw:
            try:
                records.append(dict_to_history_record(item))
            except (ValidationError, ValueError, TypeError, KeyError) as e:
                logger.warning("Skipping invalid history record: {}", e)
        return records[: self.retention]

    def append(self, record: HistoryRecord) -> None:
        """
        Prepend a record, evict past the cap, and persist.

        The in-memory list is updated even when persisting fails.

        Raises:
            StorageError: If the history could not be written
        """
        self._records.insert(0, record)
        del self._records[self.retention :]
        self.store.set(self.key, [history_record_to_dict(r) for r in self._records])

    def get_history(self) -> list[HistoryRecord]:
        """Return all records, newest first."""
        return list(self._records)

    def get_record(self, record_id: str) -> HistoryRecord:
        """
        Return one record by id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        for record in self._records:
            if record.record_id == record_id:
                return record
        raise RecordNotFoundError(f"History record not found: {record_id}")

    def stats(self, now: datetime | None = None) -> HistoryStats:
        """
        Aggregate statistics over the stored history.

        Args:
            now: Reference time for the "this week" count (default: now)
        """
        now = now or datetime.now()
        week_ago = now - timedelta(days=HISTORY_RECENT_DAYS)

        total = len(self._records)
        total_seconds = sum(r.elapsed_seconds for r in self._records)
        total_exercises = sum(r.completed_count for r in self._records)
        this_week = sum(
            1 for r in self._records if datetime.fromisoformat(r.start_time) > week_ago
        )

        return HistoryStats(
            total_sessions=total,
            total_seconds=total_seconds,
            total_exercises=total_exercises,
            sessions_this_week=this_week,
            average_seconds=round(total_seconds / total) if total else 0,
        )

    def __len__(self) -> int:
        return len(self._records)
