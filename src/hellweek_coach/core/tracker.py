"""
Progress tracker: the ledger plus the state derived from it on append.

Logging an entry persists it first; achievements and personal records are
then re-evaluated and saved.  A failure to save the entry is surfaced as
LedgerWriteError; a failure to save achievements or records afterwards is
only logged, since the entry itself is safe and the next append will
re-evaluate them.
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Any, Callable

from loguru import logger

from ..io.kv_store import KeyValueStore
from ..io.ledger_store import ProgressLedger
from ..io.serializers import (
    ValidationError,
    achievement_to_dict,
    dict_to_achievement,
    dict_to_personal_record,
    personal_record_to_dict,
    validate_date,
)
from . import metrics
from .achievements import default_achievements, evaluate_achievements, evaluate_personal_records
from .config import ACHIEVEMENTS_KEY, PERSONAL_RECORDS_KEY, START_DATE_KEY, TREND_WINDOW_DAYS
from .errors import StorageError
from .models import (
    Achievement,
    LogResult,
    PeriodReport,
    PersonalRecord,
    ProgressEntry,
    ProgressSummary,
    StreakData,
    TrendReport,
    WeeklyRollup,
)
from .program import ProgramCalendar, current_day, current_week


class ProgressTracker:
    """Owns the progress ledger, achievements, personal records and start date."""

    def __init__(
        self,
        store: KeyValueStore,
        calendar: ProgramCalendar | None = None,
        now: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] | None = None,
    ):
        self.store = store
        self.calendar = calendar or ProgramCalendar()
        self._now = now
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self.ledger = ProgressLedger(store, now=now)
        self._achievements = self._load_achievements()
        self._records = self._load_records()

    # ------------------------------------------------------------------
    # Loading / saving derived state
    # ------------------------------------------------------------------

    def _read(self, key: str) -> Any | None:
        try:
            return self.store.get(key)
        except StorageError as e:
            logger.error("Failed to load '{}': {}", key, e)
            return None

    def _load_achievements(self) -> list[Achievement]:
        raw = self._read(ACHIEVEMENTS_KEY)
        if not raw:
            achievements = default_achievements()
            self._save(ACHIEVEMENTS_KEY, [achievement_to_dict(a) for a in achievements])
            return achievements

        loaded: list[Achievement] = []
        for item in raw:
            try:
                loaded.append(dict_to_achievement(item))
            except (ValidationError, ValueError, TypeError) as e:
                logger.warning("Skipping invalid achievement: {}", e)

        # Built-ins added in later releases appear locked for existing users
        known = {a.achievement_id for a in loaded}
        loaded.extend(a for a in default_achievements() if a.achievement_id not in known)
        return loaded

    def _load_records(self) -> list[PersonalRecord]:
        records: list[PersonalRecord] = []
        for item in self._read(PERSONAL_RECORDS_KEY) or []:
            try:
                records.append(dict_to_personal_record(item))
            except (ValidationError, ValueError, TypeError) as e:
                logger.warning("Skipping invalid personal record: {}", e)
        return records

    def _save(self, key: str, value: Any) -> bool:
        try:
            self.store.set(key, value)
        except StorageError:
            logger.exception("Failed to save '{}'", key)
            return False
        return True

    # ------------------------------------------------------------------
    # Program calendar
    # ------------------------------------------------------------------

    def today(self) -> date:
        return self._now().date()

    def get_start_date(self) -> date | None:
        raw = self._read(START_DATE_KEY)
        if not raw:
            return None
        try:
            return date.fromisoformat(str(raw)[:10])
        except ValueError:
            logger.warning("Ignoring invalid training start date: {!r}", raw)
            return None

    def set_start_date(self, start: date) -> None:
        """
        Persist the training start date.

        Raises:
            StorageError: If it could not be saved
        """
        self.store.set(START_DATE_KEY, start.isoformat())

    def current_week(self) -> int:
        return current_week(self.get_start_date(), self.today())

    def current_day(self) -> int:
        return current_day(self.get_start_date(), self.today())

    # ------------------------------------------------------------------
    # Ledger mutations
    # ------------------------------------------------------------------

    def log_entry(
        self,
        entry_type: str,
        activity: str,
        entry_date: str | None = None,
        week: int | None = None,
        day: int | None = None,
        completed: bool = True,
        notes: str | None = None,
        **measures: Any,
    ) -> LogResult:
        """
        Append a new entry, then evaluate achievements and personal records.

        Week and day default to the current program week/day, the date to today.

        Raises:
            ValidationError: If the date is malformed
            ValueError: If a field is invalid
            LedgerWriteError: If the entry could not be saved
        """
        if entry_date is None:
            entry_date = self.today().isoformat()
        validate_date(entry_date)

        entry = ProgressEntry(
            entry_id=self._new_id(),
            date=entry_date,
            week=week if week is not None else self.current_week(),
            day=day if day is not None else self.current_day(),
            entry_type=entry_type,  # type: ignore[arg-type]
            activity=activity,
            created_at=self._now().isoformat(),
            completed=completed,
            notes=notes,
            **measures,
        )
        self.ledger.append(entry)

        unlocked = self._evaluate_achievements(entry)
        records = self._evaluate_records(entry)
        return LogResult(entry=entry, unlocked=tuple(unlocked), records=tuple(records))

    def update_entry(self, entry_id: str, /, **changes: Any) -> ProgressEntry:
        """
        Update an entry in place.

        Raises:
            RecordNotFoundError: If the entry does not exist
            LedgerWriteError: If the change could not be saved
        """
        return self.ledger.update(entry_id, **changes)

    def delete_entry(self, entry_id: str) -> ProgressEntry:
        """
        Delete an entry.

        Raises:
            RecordNotFoundError: If the entry does not exist
            LedgerWriteError: If the change could not be saved
        """
        return self.ledger.delete(entry_id)

    def _evaluate_achievements(self, entry: ProgressEntry) -> list[Achievement]:
        achievements, unlocked = evaluate_achievements(self._achievements, self.ledger.all(), entry)
        if unlocked:
            self._achievements = achievements
            for a in unlocked:
                logger.info("Achievement unlocked: {} ({})", a.title, a.unlocked_on)
            self._save(ACHIEVEMENTS_KEY, [achievement_to_dict(a) for a in achievements])
        return unlocked

    def _evaluate_records(self, entry: ProgressEntry) -> list[PersonalRecord]:
        records, changed = evaluate_personal_records(self._records, entry)
        if changed:
            self._records = records
            for r in changed:
                logger.info("New personal record: {} {} {}", r.discipline, r.value, r.unit)
            self._save(PERSONAL_RECORDS_KEY, [personal_record_to_dict(r) for r in records])
        return changed

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get_entries(
        self,
        start: date | None = None,
        end: date | None = None,
        week: int | None = None,
    ) -> list[ProgressEntry]:
        """Entries by week, or by inclusive date range (newest logged first)."""
        if week is not None:
            return self.ledger.for_week(week)
        return self.ledger.query(start, end)

    def get_weekly_rollup(self, week: int) -> WeeklyRollup:
        return metrics.weekly_rollup(
            self.ledger.all(),
            week,
            self.calendar.goals_for(week),
            self._achievements,
        )

    def get_streaks(self) -> StreakData:
        return metrics.compute_streaks(self.ledger.all(), self.today())

    def get_trends(self) -> TrendReport:
        return metrics.compute_trends(self.ledger.all(), self.today())

    def get_achievements(self) -> list[Achievement]:
        return list(self._achievements)

    def get_personal_records(self) -> list[PersonalRecord]:
        return list(self._records)

    def get_summary(self) -> ProgressSummary:
        return metrics.progress_summary(
            self.ledger.all(),
            self.current_week(),
            self._records,
            self.today(),
        )

    def get_recommendations(self) -> list[str]:
        today = self.today()
        recent = self.ledger.query(today - timedelta(days=TREND_WINDOW_DAYS), today)
        return metrics.recommendations(self.get_summary(), recent)

    def get_period_report(self, days: int) -> PeriodReport:
        return metrics.period_report(self.ledger.all(), days, self.today())
