"""
Tick sources for the session state machine.

A Clock schedules one periodic callback and reports the current time.
ThreadingClock drives real sessions from a daemon thread; ManualClock
advances only when told to, which makes state-machine tests deterministic.
"""

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Protocol

TickCallback = Callable[[], None]


class Clock(Protocol):
    """Schedulable tick source."""

    def schedule(self, callback: TickCallback, period_ms: int) -> int:
        """Invoke ``callback`` every ``period_ms`` until cancelled; return a handle."""
        ...

    def cancel(self, handle: int) -> None:
        """Stop a scheduled callback. Unknown handles are ignored."""
        ...

    def now(self) -> datetime:
        """Current wall-clock time as seen by this clock."""
        ...


class ThreadingClock:
    """Real-time clock: each schedule runs on its own daemon thread."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._stops: dict[int, threading.Event] = {}
        self._lock = threading.Lock()

    def schedule(self, callback: TickCallback, period_ms: int) -> int:
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")

        handle = next(self._counter)
        stop = threading.Event()
        with self._lock:
            self._stops[handle] = stop

        def _run() -> None:
            # Event.wait returns True once cancel() sets the flag
            while not stop.wait(period_ms / 1000):
                callback()

        thread = threading.Thread(target=_run, name=f"session-clock-{handle}", daemon=True)
        thread.start()
        return handle

    def cancel(self, handle: int) -> None:
        with self._lock:
            stop = self._stops.pop(handle, None)
        if stop is not None:
            stop.set()

    def now(self) -> datetime:
        return datetime.now()


@dataclass
class _ManualJob:
    callback: TickCallback
    period_ms: int
    due_ms: int


class ManualClock:
    """
    Deterministic clock for tests and simulations.

    Time stands still until ``advance`` or ``tick`` is called; due
    callbacks then fire in order on the caller's thread.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime(2026, 1, 5, 6, 0, 0)
        self._elapsed_ms = 0
        self._counter = itertools.count(1)
        self._jobs: dict[int, _ManualJob] = {}

    @property
    def active_handles(self) -> list[int]:
        return list(self._jobs)

    def schedule(self, callback: TickCallback, period_ms: int) -> int:
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")
        handle = next(self._counter)
        self._jobs[handle] = _ManualJob(callback, period_ms, self._elapsed_ms + period_ms)
        return handle

    def cancel(self, handle: int) -> None:
        self._jobs.pop(handle, None)

    def now(self) -> datetime:
        return self._start + timedelta(milliseconds=self._elapsed_ms)

    def advance(self, ms: int) -> None:
        """Move time forward by ``ms`` milliseconds, firing due callbacks."""
        target = self._elapsed_ms + ms
        while True:
            due = [
                (job.due_ms, handle)
                for handle, job in self._jobs.items()
                if job.due_ms <= target
            ]
            if not due:
                break
            due_ms, handle = min(due)
            job = self._jobs[handle]
            self._elapsed_ms = due_ms
            job.due_ms += job.period_ms
            job.callback()
        self._elapsed_ms = target

    def tick(self, count: int = 1, period_ms: int = 1000) -> None:
        """Advance by ``count`` periods of ``period_ms``."""
        for _ in range(count):
            self.advance(period_ms)
