"""
TrainingCompanion: the single object the presentation layer talks to.

Wires the catalog, session manager, session history and progress tracker
around one key-value store, and translates every finished session into a
workout entry in the progress ledger.
"""

from datetime import date, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from .core.catalog.registry import DEFAULT_CATALOG, CatalogProvider
from .core.clock import Clock, ThreadingClock
from .core.errors import LedgerWriteError
from .core.models import (
    Achievement,
    ActiveSession,
    HistoryRecord,
    HistoryStats,
    LogResult,
    PeriodReport,
    PersonalRecord,
    ProgressEntry,
    ProgressSummary,
    StreakData,
    TrendReport,
    WeeklyRollup,
    WorkoutTemplate,
)
from .core.program import ProgramCalendar
from .core.session import SessionManager
from .core.tracker import ProgressTracker
from .io.history_store import SessionHistoryStore
from .io.kv_store import JsonFileStore, KeyValueStore


def session_to_entry_fields(record: HistoryRecord) -> dict[str, Any]:
    """Ledger fields for a finished session: a workout named after the template."""
    return {
        "entry_type": "workout",
        "activity": record.name,
        "entry_date": record.start_time[:10],
        "completed": not record.stopped,
        "duration": round(record.elapsed_seconds / 60, 1),
        "sets": record.completed_count,
        "notes": f"Session {record.record_id}",
    }


class TrainingCompanion:
    """Facade over sessions, history and progress for one user."""

    def __init__(
        self,
        store: KeyValueStore,
        catalog: CatalogProvider | None = None,
        clock: Clock | None = None,
        calendar: ProgramCalendar | None = None,
        log_sessions: bool = True,
    ):
        """
        Args:
            store: Key-value persistence shared by history and ledger
            catalog: Workout templates (default: bundled catalog)
            clock: Session tick source (default: real time)
            calendar: Program targets (default: from program.yaml)
            log_sessions: Add a ledger entry for every finished session
        """
        self.catalog = catalog or DEFAULT_CATALOG
        self.clock = clock or ThreadingClock()
        self.history = SessionHistoryStore(store)
        self.tracker = ProgressTracker(store, calendar=calendar, now=self.clock.now)
        self.sessions = SessionManager(self.catalog, self.history, self.clock)
        if log_sessions:
            self.sessions.add_finish_listener(self._log_session)

    @classmethod
    def from_data_dir(cls, data_dir: str | Path, **kwargs: Any) -> "TrainingCompanion":
        return cls(JsonFileStore(data_dir), **kwargs)

    def _log_session(self, record: HistoryRecord) -> None:
        try:
            self.tracker.log_entry(**session_to_entry_fields(record))
        except LedgerWriteError:
            logger.error("Session '{}' was not added to the progress ledger", record.record_id)

    # ------------------------------------------------------------------
    # Catalog and sessions
    # ------------------------------------------------------------------

    def list_templates(self) -> list[WorkoutTemplate]:
        return self.catalog.list_templates()

    def start_session(self, template_id: str) -> ActiveSession:
        return self.sessions.start(template_id)

    def pause_session(self) -> None:
        self.sessions.pause()

    def resume_session(self) -> None:
        self.sessions.resume()

    def skip_exercise(self) -> None:
        self.sessions.skip()

    def stop_session(self) -> HistoryRecord | None:
        return self.sessions.stop()

    def get_current_session(self) -> ActiveSession | None:
        return self.sessions.get_current_session()

    def get_history(self) -> list[HistoryRecord]:
        return self.history.get_history()

    def get_history_stats(self) -> HistoryStats:
        return self.history.stats(self.clock.now())

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def log_entry(self, entry_type: str, activity: str, **fields: Any) -> LogResult:
        return self.tracker.log_entry(entry_type, activity, **fields)

    def get_ledger_entries(
        self,
        start: date | None = None,
        end: date | None = None,
        week: int | None = None,
    ) -> list[ProgressEntry]:
        return self.tracker.get_entries(start, end, week)

    def update_entry(self, entry_id: str, /, **changes: Any) -> ProgressEntry:
        return self.tracker.update_entry(entry_id, **changes)

    def delete_entry(self, entry_id: str) -> ProgressEntry:
        return self.tracker.delete_entry(entry_id)

    def get_start_date(self) -> date | None:
        return self.tracker.get_start_date()

    def set_start_date(self, start: date) -> None:
        self.tracker.set_start_date(start)

    def get_weekly_rollup(self, week: int) -> WeeklyRollup:
        return self.tracker.get_weekly_rollup(week)

    def get_streaks(self) -> StreakData:
        return self.tracker.get_streaks()

    def get_trends(self) -> TrendReport:
        return self.tracker.get_trends()

    def get_achievements(self) -> list[Achievement]:
        return self.tracker.get_achievements()

    def get_personal_records(self) -> list[PersonalRecord]:
        return self.tracker.get_personal_records()

    def get_summary(self) -> ProgressSummary:
        return self.tracker.get_summary()

    def get_recommendations(self) -> list[str]:
        return self.tracker.get_recommendations()

    def get_period_report(self, days: int) -> PeriodReport:
        return self.tracker.get_period_report(days)

    def now(self) -> datetime:
        return self.clock.now()

    def close(self) -> None:
        """Drop any unfinished session and stop its clock."""
        self.sessions.cleanup()
