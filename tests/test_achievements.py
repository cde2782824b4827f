"""
Tests for achievements, personal records and the ProgressTracker that
re-evaluates both whenever an entry is logged.
"""

from datetime import datetime

import pytest

from hellweek_coach.core.achievements import (
    default_achievements,
    evaluate_achievements,
    evaluate_personal_records,
    matching_disciplines,
    normalize_activity,
)
from hellweek_coach.core.errors import LedgerWriteError, RecordNotFoundError, StorageError
from hellweek_coach.core.models import PersonalRecord, ProgressEntry
from hellweek_coach.core.tracker import ProgressTracker
from hellweek_coach.io.kv_store import MemoryStore
from hellweek_coach.io.serializers import ValidationError


def _workout(activity: str, entry_id: str = "w1", date: str = "2026-03-10", **measures) -> ProgressEntry:
    return ProgressEntry(
        entry_id=entry_id,
        date=date,
        week=1,
        day=2,
        entry_type="workout",
        activity=activity,
        created_at=f"{date}T07:00:00",
        **measures,
    )


class FailingStore(MemoryStore):
    """MemoryStore whose writes fail once ``fail`` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise StorageError("quota exceeded")
        super().set(key, value)


class FixedNow:
    """Callable clock for the tracker."""

    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


@pytest.fixture
def now():
    return FixedNow(datetime(2026, 3, 10, 18, 30))


@pytest.fixture
def store():
    return FailingStore()


@pytest.fixture
def tracker(store, now):
    ids = iter(f"id{n}" for n in range(1, 1000))
    return ProgressTracker(store, now=now, id_factory=lambda: next(ids))


# ---------------------------------------------------------------------------
# Personal records
# ---------------------------------------------------------------------------


class TestPersonalRecords:
    """Strictly-greater replacement of personal bests."""

    def test_normalize_activity(self):
        assert normalize_activity("Push-Ups") == "pushups"
        assert normalize_activity("4-Mile Run") == "4milerun"

    def test_matching_disciplines(self):
        assert matching_disciplines("4-Mile Run") == ["run"]
        assert matching_disciplines("Pool swim") == ["swim"]
        assert matching_disciplines("Pull-ups") == ["pullups"]
        assert matching_disciplines("Breakfast") == []

    def test_first_record(self):
        records, changed = evaluate_personal_records([], _workout("4-Mile Run", distance=4))
        assert changed == records
        assert records[0].discipline == "run"
        assert records[0].value == 4
        assert records[0].unit == "miles"
        assert records[0].previous_value is None

    def test_larger_value_replaces_and_keeps_previous(self):
        existing = [PersonalRecord("run", "3-Mile Run", 3.0, "miles", "2026-03-01")]
        records, changed = evaluate_personal_records(
            existing, _workout("4-Mile Run", distance=4.0)
        )
        assert len(records) == 1
        assert records[0].value == 4.0
        assert records[0].previous_value == 3.0
        assert records[0].improvement == 1.0
        assert records[0].date == "2026-03-10"
        assert changed == records

    def test_equal_value_does_not_replace(self):
        existing = [PersonalRecord("run", "4-Mile Run", 4.0, "miles", "2026-03-01")]
        records, changed = evaluate_personal_records(
            existing, _workout("4-Mile Run", distance=4.0)
        )
        assert records == existing
        assert changed == []

    def test_reps_disciplines(self):
        records, _ = evaluate_personal_records([], _workout("Push-ups", reps=60))
        assert records[0].discipline == "pushups"
        assert records[0].unit == "reps"

    def test_missing_measure_ignored(self):
        records, changed = evaluate_personal_records([], _workout("Easy run"))
        assert records == []
        assert changed == []

    def test_non_workout_and_incomplete_ignored(self):
        meal = ProgressEntry(
            entry_id="n1",
            date="2026-03-10",
            week=1,
            day=2,
            entry_type="nutrition",
            activity="Run fuel",
            created_at="2026-03-10T07:00:00",
            distance=5,
        )
        assert evaluate_personal_records([], meal) == ([], [])
        skipped = _workout("Run", completed=False, distance=10)
        assert evaluate_personal_records([], skipped) == ([], [])


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class TestAchievements:
    """One-time unlocks."""

    def test_defaults_are_locked(self):
        achievements = default_achievements()
        assert [a.achievement_id for a in achievements] == [
            "first_workout",
            "week_complete",
            "mental_master",
        ]
        assert not any(a.unlocked for a in achievements)

    def test_first_workout_unlocks_once(self):
        first = _workout("Run")
        achievements, unlocked = evaluate_achievements(default_achievements(), [first], first)
        assert [a.achievement_id for a in unlocked] == ["first_workout", "week_complete"]
        assert unlocked[0].unlocked_on == "2026-03-10"

        second = _workout("Run", entry_id="w2", date="2026-03-11")
        again, unlocked_again = evaluate_achievements(achievements, [first, second], second)
        assert unlocked_again == []
        assert again == achievements

    def test_week_complete_requires_every_workout_done(self):
        done = _workout("Run")
        missed = _workout("Swim", entry_id="w2", completed=False)
        _, unlocked = evaluate_achievements(default_achievements(), [done, missed], missed)
        assert "week_complete" not in [a.achievement_id for a in unlocked]

    def test_mental_master_after_seven_sessions(self):
        mental = [
            ProgressEntry(
                entry_id=f"m{n}",
                date=f"2026-03-{n + 1:02d}",
                week=1,
                day=(n % 7) + 1,
                entry_type="mental",
                activity="Visualization",
                created_at=f"2026-03-{n + 1:02d}T21:00:00",
            )
            for n in range(7)
        ]
        _, unlocked = evaluate_achievements(default_achievements(), mental[:6], mental[5])
        assert unlocked == []
        _, unlocked = evaluate_achievements(default_achievements(), mental, mental[6])
        assert [a.achievement_id for a in unlocked] == ["mental_master"]
        assert unlocked[0].unlocked_on == "2026-03-07"


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------


class TestProgressTracker:
    """Logging entries through the tracker."""

    def test_seeds_default_achievements(self, tracker, store):
        assert len(store.get("achievements")) == 3
        assert all(not a.unlocked for a in tracker.get_achievements())

    def test_log_entry_defaults(self, tracker):
        result = tracker.log_entry("nutrition", "Breakfast", calories=900)
        entry = result.entry
        assert entry.entry_id == "id1"
        assert entry.date == "2026-03-10"
        assert entry.week == 1
        assert entry.day == 2  # Tuesday, no start date
        assert entry.created_at == "2026-03-10T18:30:00"
        assert result.unlocked == ()
        assert result.records == ()

    def test_log_uses_start_date_for_week(self, tracker, now):
        tracker.set_start_date(datetime(2026, 2, 23).date())
        entry = tracker.log_entry("mental", "Box breathing").entry
        assert entry.week == 3
        assert entry.day == 2

    def test_log_workout_unlocks_and_sets_record(self, tracker, store):
        result = tracker.log_entry("workout", "4-Mile Run", distance=4, duration=32)
        assert "first_workout" in [a.achievement_id for a in result.unlocked]
        assert [r.discipline for r in result.records] == ["run"]
        assert store.get("personal_records")[0]["value"] == 4

        better = tracker.log_entry("workout", "5-Mile Run", distance=5)
        assert better.unlocked == ()
        assert better.records[0].previous_value == 4

    def test_invalid_input(self, tracker):
        with pytest.raises(ValidationError):
            tracker.log_entry("workout", "Run", entry_date="10/03/2026")
        with pytest.raises(ValueError):
            tracker.log_entry("sleeping", "Nap")
        with pytest.raises(ValueError):
            tracker.log_entry("recovery", "Check-in", mood=11)
        assert len(tracker.ledger) == 0

    def test_failed_write_raises_and_keeps_ledger(self, tracker, store):
        tracker.log_entry("workout", "Run", distance=2)
        store.fail = True
        with pytest.raises(LedgerWriteError):
            tracker.log_entry("workout", "Run", distance=3)
        assert len(tracker.ledger) == 1
        assert tracker.get_personal_records()[0].value == 2

    def test_update_and_delete(self, tracker):
        entry = tracker.log_entry("workout", "Run", distance=2).entry
        updated = tracker.update_entry(entry.entry_id, distance=2.5, notes="windy")
        assert updated.distance == 2.5
        assert updated.updated_at == "2026-03-10T18:30:00"
        assert tracker.get_entries()[0].notes == "windy"

        with pytest.raises(ValueError, match="entry_id"):
            tracker.update_entry(entry.entry_id, entry_id="other")
        with pytest.raises(ValueError, match="Unknown entry fields"):
            tracker.update_entry(entry.entry_id, miles=3)
        assert tracker.get_entries()[0].entry_id == entry.entry_id

        tracker.delete_entry(entry.entry_id)
        assert tracker.get_entries() == []
        with pytest.raises(RecordNotFoundError):
            tracker.delete_entry(entry.entry_id)

    def test_state_survives_reload(self, tracker, store, now):
        tracker.log_entry("workout", "Pull-ups", reps=12)
        reloaded = ProgressTracker(store, now=now)
        assert len(reloaded.ledger) == 1
        assert reloaded.get_personal_records()[0].value == 12
        assert any(a.unlocked for a in reloaded.get_achievements())

    def test_rollup_and_summary(self, tracker):
        tracker.log_entry("workout", "4-Mile Run", distance=4)
        tracker.log_entry("recovery", "Check-in", sleep=6, mood=7)
        rollup = tracker.get_weekly_rollup(1)
        assert rollup.total_workouts == 1
        assert rollup.completion_rate == 100.0
        assert rollup.average_sleep == 6
        assert rollup.goals.miles == 25
        assert [a.achievement_id for a in rollup.achievements] == ["first_workout", "week_complete"]

        summary = tracker.get_summary()
        assert summary.total_distance == 4
        assert summary.streaks.current_workout == 1
        assert tracker.get_recommendations()
        assert tracker.get_period_report(7).workouts.total_workouts == 1
