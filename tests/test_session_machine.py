"""
Unit tests for the live session state machine.

Sessions are driven by a ManualClock so every tick is explicit.  The
small template used throughout:

    squat   3s work, 2s rest, 2 sets
    plank   2s work, 1s rest, 1 set

runs squat(3) rest(2) squat(3) rest(2) plank(2) = 12 ticks, 3 sets.
"""

import pytest

from hellweek_coach.core.catalog import Catalog
from hellweek_coach.core.clock import ManualClock
from hellweek_coach.core.errors import StorageError, TemplateNotFoundError
from hellweek_coach.core.models import Exercise, HistoryRecord, WorkoutTemplate
from hellweek_coach.core.session import SessionManager, format_time
from hellweek_coach.io.history_store import SessionHistoryStore
from hellweek_coach.io.kv_store import MemoryStore

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _ex(eid: str, duration: int, rest: int, sets: int) -> Exercise:
    return Exercise(
        exercise_id=eid,
        name=eid.capitalize(),
        category="strength",
        duration=duration,
        rest_time=rest,
        sets=sets,
        reps=10,
    )


SHORT = WorkoutTemplate(
    template_id="short",
    name="Short Circuit",
    description="Two-exercise test circuit",
    duration_minutes=1,
    exercises=(_ex("squat", 3, 2, 2), _ex("plank", 2, 1, 1)),
)

NO_REST = WorkoutTemplate(
    template_id="no-rest",
    name="No Rest",
    description="Back-to-back sets",
    duration_minutes=1,
    exercises=(_ex("burpee", 2, 0, 2),),
)


class FailingStore(MemoryStore):
    """MemoryStore whose writes fail once ``fail`` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise StorageError("disk full")
        super().set(key, value)


class RecordingClock(ManualClock):
    """ManualClock that remembers every callback it was ever given."""

    def __init__(self):
        super().__init__()
        self.callbacks = []

    def schedule(self, callback, period_ms):
        self.callbacks.append(callback)
        return super().schedule(callback, period_ms)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store():
    return FailingStore()


@pytest.fixture
def history(store):
    return SessionHistoryStore(store)


@pytest.fixture
def manager(clock, history):
    return SessionManager(Catalog([SHORT, NO_REST]), history, clock)


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------


class TestStart:
    """Starting a session."""

    def test_initial_state(self, manager, clock):
        """A new session begins on the first set of the first exercise."""
        session = manager.start("short")
        assert session.current_exercise_index == 0
        assert session.current_set == 1
        assert session.resting is False
        assert session.paused is False
        assert session.countdown == 3
        assert session.elapsed_seconds == 0
        assert session.completed_exercises == []
        assert session.start_time == clock.now().isoformat(timespec="seconds")
        assert manager.is_active
        assert len(clock.active_handles) == 1

    def test_unknown_template_changes_nothing(self, manager, history):
        """An unknown id raises and leaves the manager idle."""
        with pytest.raises(TemplateNotFoundError, match="nope"):
            manager.start("nope")
        assert not manager.is_active
        assert manager.get_current_session() is None
        assert len(history) == 0

    def test_unknown_template_keeps_running_session(self, manager, clock):
        """A failed start does not disturb the session already running."""
        manager.start("short")
        clock.tick()
        with pytest.raises(TemplateNotFoundError):
            manager.start("nope")
        assert manager.get_current_session().countdown == 2

    def test_restart_discards_previous_session(self, manager, clock, history):
        """Starting again replaces the unfinished session without recording it."""
        manager.start("short")
        clock.tick(2)
        session = manager.start("no-rest")
        assert session.template.template_id == "no-rest"
        assert len(clock.active_handles) == 1
        assert len(history) == 0

    def test_cancelled_driver_cannot_tick_new_session(self, history):
        """A driver callback already in flight when its session is replaced is ignored."""
        clock = RecordingClock()
        manager = SessionManager(Catalog([SHORT, NO_REST]), history, clock)
        manager.start("short")
        stale = clock.callbacks[0]
        manager.start("no-rest")

        stale()
        session = manager.get_current_session()
        assert session.elapsed_seconds == 0
        assert session.countdown == 2

        clock.tick()
        assert manager.get_current_session().elapsed_seconds == 1

    def test_driver_of_finished_session_is_ignored(self, history):
        clock = RecordingClock()
        manager = SessionManager(Catalog([SHORT, NO_REST]), history, clock)
        manager.start("short")
        stale = clock.callbacks[0]
        manager.stop()
        manager.start("short")

        stale()
        assert manager.get_current_session().countdown == 3

    def test_snapshot_is_a_copy(self, manager):
        """Mutating a returned snapshot does not affect the live session."""
        snapshot = manager.start("short")
        snapshot.countdown = 99
        snapshot.completed_exercises.append("junk")
        live = manager.get_current_session()
        assert live.countdown == 3
        assert live.completed_exercises == []


# ---------------------------------------------------------------------------
# Ticking
# ---------------------------------------------------------------------------


class TestTick:
    """Countdown and phase transitions."""

    def test_tick_decrements_and_counts_elapsed(self, manager, clock):
        manager.start("short")
        clock.tick()
        session = manager.get_current_session()
        assert session.countdown == 2
        assert session.elapsed_seconds == 1

    def test_end_of_set_enters_rest(self, manager, clock):
        """Finishing a set with sets left records it and starts the rest."""
        manager.start("short")
        clock.tick(3)
        session = manager.get_current_session()
        assert session.resting is True
        assert session.current_set == 2
        assert session.countdown == 2
        assert session.done_count == 1
        assert session.completed_exercises[0].set_number == 1

    def test_end_of_rest_starts_next_set(self, manager, clock):
        manager.start("short")
        clock.tick(5)
        session = manager.get_current_session()
        assert session.resting is False
        assert session.current_exercise_index == 0
        assert session.current_set == 2
        assert session.countdown == 3

    def test_last_set_rests_before_next_exercise(self, manager, clock):
        """The rest before a new exercise uses the finished exercise's rest time."""
        manager.start("short")
        clock.tick(8)
        session = manager.get_current_session()
        assert session.resting is True
        assert session.current_exercise_index == 1
        assert session.current_set == 1
        assert session.countdown == 2

    def test_full_run_completes(self, manager, clock, history):
        """Ticking through the template records every set and finishes."""
        manager.start("short")
        clock.tick(12)

        assert not manager.is_active
        assert clock.active_handles == []
        records = history.get_history()
        assert len(records) == 1
        record = records[0]
        assert record.stopped is False
        assert record.elapsed_seconds == 12
        assert record.completed_count == SHORT.total_sets == 3
        assert record.total_exercises == 2
        assert [c.exercise.exercise_id for c in record.completed_exercises] == [
            "squat",
            "squat",
            "plank",
        ]
        assert record.end_time == clock.now().isoformat(timespec="seconds")

    def test_exercise_index_never_decreases(self, manager, clock):
        manager.start("short")
        seen = []
        for _ in range(11):
            clock.tick()
            seen.append(manager.get_current_session().current_exercise_index)
        assert seen == sorted(seen)

    def test_zero_rest_takes_one_tick(self, manager, clock, history):
        """A zero-length rest never goes negative and still finishes."""
        manager.start("no-rest")
        clock.tick(2)
        session = manager.get_current_session()
        assert session.resting is True
        assert session.countdown == 0
        clock.tick()
        session = manager.get_current_session()
        assert session.resting is False
        assert session.countdown == 2
        clock.tick(2)
        assert not manager.is_active
        assert history.get_history()[0].completed_count == 2

    def test_tick_when_idle_is_noop(self, manager):
        manager.tick()
        assert manager.get_current_session() is None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    """Pause, resume, skip and stop."""

    def test_pause_freezes_countdown(self, manager, clock):
        manager.start("short")
        clock.tick()
        manager.pause()
        clock.tick(5)
        session = manager.get_current_session()
        assert session.paused is True
        assert session.countdown == 2
        assert session.elapsed_seconds == 1

    def test_resume_continues(self, manager, clock):
        manager.start("short")
        manager.pause()
        clock.tick(3)
        manager.resume()
        clock.tick()
        assert manager.get_current_session().countdown == 2

    def test_toggle_pause(self, manager):
        manager.start("short")
        manager.toggle_pause()
        assert manager.get_current_session().paused is True
        manager.toggle_pause()
        assert manager.get_current_session().paused is False

    def test_skip_while_exercising(self, manager):
        """Skip records the exercise as skipped and moves to the next one."""
        manager.start("short")
        manager.skip()
        session = manager.get_current_session()
        assert session.current_exercise_index == 1
        assert session.current_set == 1
        assert session.resting is False
        assert session.countdown == 2
        assert session.completed_exercises[-1].skipped is True
        assert session.done_count == 0

    def test_skip_while_resting_skips_upcoming_exercise(self, manager, clock):
        manager.start("short")
        clock.tick(8)  # resting before plank
        manager.skip()
        assert not manager.is_active

    def test_skip_last_exercise_completes(self, manager, history):
        manager.start("short")
        manager.skip()
        manager.skip()
        assert not manager.is_active
        record = history.get_history()[0]
        assert record.stopped is False
        assert record.completed_count == 0
        assert all(c.skipped for c in record.completed_exercises)

    def test_stop_after_one_tick(self, manager, clock, history):
        """Stopping records a partial session and cancels the clock."""
        manager.start("short")
        clock.tick()
        record = manager.stop()

        assert isinstance(record, HistoryRecord)
        assert record.stopped is True
        assert record.elapsed_seconds == 1
        assert record.completed_count == 0
        assert history.get_history() == [record]
        assert clock.active_handles == []
        assert not manager.is_active

    def test_commands_when_idle_are_noops(self, manager, history):
        manager.pause()
        manager.resume()
        manager.toggle_pause()
        manager.skip()
        assert manager.stop() is None
        assert len(history) == 0

    def test_cleanup_drops_session(self, manager, clock, history):
        manager.start("short")
        manager.cleanup()
        assert not manager.is_active
        assert clock.active_handles == []
        assert len(history) == 0


# ---------------------------------------------------------------------------
# Observers and persistence
# ---------------------------------------------------------------------------


class TestObservers:
    """Snapshots, finish listeners and failure isolation."""

    def test_observer_receives_every_change(self, manager, clock):
        snapshots = []
        manager.subscribe(snapshots.append)
        manager.start("short")
        clock.tick(2)
        assert [s.countdown for s in snapshots] == [3, 2, 1]

    def test_unsubscribe(self, manager, clock):
        snapshots = []
        unsubscribe = manager.subscribe(snapshots.append)
        manager.start("short")
        unsubscribe()
        clock.tick(2)
        assert len(snapshots) == 1

    def test_final_snapshot_is_finished(self, manager, clock):
        snapshots = []
        manager.subscribe(snapshots.append)
        manager.start("short")
        clock.tick(12)
        assert snapshots[-1].phase == "completed"
        assert snapshots[-1].is_finished

    def test_failing_observer_does_not_break_session(self, manager, clock):
        def boom(session):
            raise RuntimeError("observer failed")

        manager.subscribe(boom)
        manager.start("short")
        clock.tick()
        assert manager.get_current_session().countdown == 2

    def test_finish_listener_gets_record(self, manager, clock):
        finished = []
        manager.add_finish_listener(finished.append)
        manager.start("no-rest")
        clock.tick(5)
        assert len(finished) == 1
        assert finished[0].template_id == "no-rest"

    def test_persistence_failure_still_clears_session(self, manager, clock, store, history):
        """A failed history write is logged; the session still ends."""
        finished = []
        manager.add_finish_listener(finished.append)
        manager.start("short")
        store.fail = True
        record = manager.stop()

        assert not manager.is_active
        assert clock.active_handles == []
        assert finished == [record]
        assert history.get_history() == [record]
        assert store.get("workout_history") is None


class TestFormatTime:
    """MM:SS timer formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "00:00"), (59, "00:59"), (60, "01:00"), (1800, "30:00"), (-5, "00:00")],
    )
    def test_format_time(self, seconds, expected):
        assert format_time(seconds) == expected
