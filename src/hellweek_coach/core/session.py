"""
Live workout session state machine.

SessionManager owns at most one ActiveSession.  A Clock drives it once per
second; each tick decrements the countdown and, when it reaches zero,
performs exactly one transition:

    exercising --(set done, sets left)------> resting (between sets)
    exercising --(last set, exercises left)-> resting (before next exercise)
    exercising --(last set, last exercise)--> completed
    resting    --(rest over)----------------> exercising | completed

Pause freezes the countdown; skip and stop are user commands.  Every tick
and command runs under one lock, so a pending tick never interleaves with
a command.  Observers get a deep-copied snapshot after every mutation.
"""

import copy
import threading
import uuid
from typing import Callable, Protocol

from loguru import logger

from .catalog.registry import CatalogProvider
from .clock import Clock, ThreadingClock
from .config import TICK_PERIOD_MS
from .models import ActiveSession, CompletedExerciseRecord, HistoryRecord

SessionObserver = Callable[[ActiveSession], None]
FinishListener = Callable[[HistoryRecord], None]


class HistorySink(Protocol):
    """Anything that accepts finished-session records (SessionHistoryStore)."""

    def append(self, record: HistoryRecord) -> None:
        ...


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS for timer displays."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class SessionManager:
    """Single-slot owner of the active workout session."""

    def __init__(
        self,
        catalog: CatalogProvider,
        history: HistorySink,
        clock: Clock | None = None,
        tick_period_ms: int = TICK_PERIOD_MS,
        id_factory: Callable[[], str] | None = None,
    ):
        """
        Args:
            catalog: Source of workout templates
            history: Receives a HistoryRecord for every finished session
            clock: Tick source (default: real-time ThreadingClock)
            tick_period_ms: Tick period handed to the clock
            id_factory: Generates history record ids (default: uuid4 hex)
        """
        self.catalog = catalog
        self.history = history
        self.clock: Clock = clock or ThreadingClock()
        self.tick_period_ms = tick_period_ms
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)

        self._lock = threading.RLock()
        self._session: ActiveSession | None = None
        self._handle: int | None = None
        self._generation = 0
        self._observers: list[SessionObserver] = []
        self._finish_listeners: list[FinishListener] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register a snapshot observer; returns a function that unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def add_finish_listener(self, listener: FinishListener) -> Callable[[], None]:
        """Register a callback for finished sessions; returns a remover."""
        with self._lock:
            self._finish_listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                if listener in self._finish_listeners:
                    self._finish_listeners.remove(listener)

        return _remove

    def _notify(self, session: ActiveSession) -> ActiveSession:
        for observer in list(self._observers):
            try:
                observer(copy.deepcopy(session))
            except Exception:
                logger.exception("Session observer {} failed", observer)
        return copy.deepcopy(session)

    def _emit_finished(self, record: HistoryRecord) -> None:
        for listener in list(self._finish_listeners):
            try:
                listener(record)
            except Exception:
                logger.exception("Session finish listener {} failed", listener)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def get_current_session(self) -> ActiveSession | None:
        """Snapshot of the active session, or None."""
        with self._lock:
            return copy.deepcopy(self._session) if self._session else None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, template_id: str) -> ActiveSession:
        """
        Start a session for the given template, discarding any unfinished one.

        Raises:
            TemplateNotFoundError: If template_id is unknown (nothing is changed)
        """
        template = self.catalog.get_template(template_id)

        with self._lock:
            if self._session is not None:
                logger.warning(
                    "Discarding unfinished session '{}' to start '{}'",
                    self._session.template.template_id,
                    template_id,
                )
                self._cancel_driver()
                self._session = None

            session = ActiveSession(
                template=template,
                start_time=self._timestamp(),
                countdown=template.exercises[0].duration,
            )
            self._session = session
            self._schedule_driver()
            logger.info("Started session '{}'", template_id)
            return self._notify(session)

    def tick(self) -> None:
        """Advance the active session by one second (no-op if paused or idle)."""
        self._advance()

    def _advance(self, generation: int | None = None) -> None:
        record: HistoryRecord | None = None
        with self._lock:
            # A driver already inside its callback when cancelled must not touch a newer session
            if generation is not None and generation != self._generation:
                return
            session = self._session
            if session is None or session.paused:
                return

            session.countdown = max(0, session.countdown - 1)
            session.elapsed_seconds += 1
            if session.countdown == 0:
                self._on_countdown_expired(session)

            if session.completed:
                record = self._finalize(session)
            else:
                self._notify(session)

        if record is not None:
            self._emit_finished(record)

    def pause(self) -> None:
        self._set_paused(True)

    def resume(self) -> None:
        self._set_paused(False)

    def toggle_pause(self) -> None:
        with self._lock:
            if self._session is not None:
                self._set_paused(not self._session.paused)

    def _set_paused(self, paused: bool) -> None:
        with self._lock:
            session = self._session
            if session is None or session.paused == paused:
                return
            session.paused = paused
            self._notify(session)

    def skip(self) -> None:
        """
        Record the current exercise as skipped and move to the next one.

        Works in either phase; a skip during the rest before an exercise
        skips that upcoming exercise.
        """
        record: HistoryRecord | None = None
        with self._lock:
            session = self._session
            if session is None:
                return

            exercise = session.current_exercise
            if exercise is not None:
                session.completed_exercises.append(
                    CompletedExerciseRecord(
                        exercise=exercise,
                        completed_at=self._timestamp(),
                        set_number=session.current_set,
                        skipped=True,
                    )
                )
            session.current_exercise_index += 1
            session.current_set = 1
            session.resting = False

            nxt = session.current_exercise
            if nxt is not None:
                session.countdown = nxt.duration
                self._notify(session)
            else:
                session.countdown = 0
                session.completed = True
                record = self._finalize(session)

        if record is not None:
            self._emit_finished(record)

    def stop(self) -> HistoryRecord | None:
        """
        Abort the active session and record what was done so far.

        Returns:
            The HistoryRecord, or None if no session was active
        """
        with self._lock:
            session = self._session
            if session is None:
                return None
            session.stopped = True
            record = self._finalize(session)

        self._emit_finished(record)
        return record

    def cleanup(self) -> None:
        """Cancel the driver and drop the active session without recording it."""
        with self._lock:
            self._cancel_driver()
            self._session = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_countdown_expired(self, session: ActiveSession) -> None:
        exercise = session.current_exercise
        if exercise is None:
            session.completed = True
            return

        if not session.resting:
            session.completed_exercises.append(
                CompletedExerciseRecord(
                    exercise=exercise,
                    completed_at=self._timestamp(),
                    set_number=session.current_set,
                )
            )
            if session.current_set < exercise.sets:
                session.current_set += 1
                session.resting = True
                session.countdown = exercise.rest_time
                return

            session.current_set = 1
            session.current_exercise_index += 1
            if session.current_exercise is not None:
                # Rest before the next exercise uses the finished exercise's rest time
                session.resting = True
                session.countdown = exercise.rest_time
            else:
                session.completed = True
            return

        session.resting = False
        session.countdown = exercise.duration

    def _finalize(self, session: ActiveSession) -> HistoryRecord:
        """Close out a completed or stopped session. Caller holds the lock."""
        self._cancel_driver()
        session.end_time = self._timestamp()

        record = HistoryRecord(
            record_id=self._new_id(),
            template_id=session.template.template_id,
            name=session.template.name,
            start_time=session.start_time,
            end_time=session.end_time,
            elapsed_seconds=session.elapsed_seconds,
            completed_exercises=tuple(session.completed_exercises),
            total_exercises=len(session.template.exercises),
            completed_count=session.done_count,
            stopped=session.stopped,
        )

        self._notify(session)
        self._session = None
        logger.info(
            "Session '{}' {} after {}s ({} sets done)",
            record.template_id,
            "stopped" if record.stopped else "completed",
            record.elapsed_seconds,
            record.completed_count,
        )

        try:
            self.history.append(record)
        except Exception:
            logger.exception("Failed to save session history for '{}'", record.template_id)

        return record

    def _schedule_driver(self) -> None:
        """Start a clock driver bound to the current generation. Caller holds the lock."""
        generation = self._generation
        self._handle = self.clock.schedule(
            lambda: self._advance(generation), self.tick_period_ms
        )

    def _cancel_driver(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self.clock.cancel(self._handle)
            self._handle = None

    def _timestamp(self) -> str:
        return self.clock.now().isoformat(timespec="seconds")
