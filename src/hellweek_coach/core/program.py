"""
Program calendar: week targets and the current program week/day.

Week targets are read-only reference data from program.yaml; nothing in
the engine mutates them.
"""

from datetime import date

from .config import (
    DAILY_CALORIE_GOAL,
    DAILY_HYDRATION_GOAL_OZ,
    DAILY_SLEEP_GOAL_HOURS,
    DAYS_PER_WEEK,
    PROGRAM_WEEKS,
)
from .engine.config_loader import load_program_config
from .models import WeeklyGoals, WeekTargets


def week_targets_from_config(config: dict) -> dict[int, WeekTargets]:
    """
    Build {week: WeekTargets} from the ``weeks`` section of a program config.

    Raises:
        ValueError: If a week entry is malformed
    """
    targets: dict[int, WeekTargets] = {}
    for raw_week, data in (config.get("weeks") or {}).items():
        week = int(raw_week)
        if not isinstance(data, dict):
            raise ValueError(f"Week {week} must be a mapping, got {type(data).__name__}")
        targets[week] = WeekTargets(
            week=week,
            focus=str(data.get("focus", "")),
            miles=float(data.get("miles", 0)),
            swim_hours=float(data.get("swim_hours", 0)),
            strength_sessions=int(data.get("strength_sessions", 0)),
            mental_hours=float(data.get("mental_hours", 0)),
        )
    return dict(sorted(targets.items()))


class ProgramCalendar:
    """Week targets plus daily goals for the preparation program."""

    def __init__(
        self,
        targets: dict[int, WeekTargets] | None = None,
        daily_goals: dict | None = None,
    ):
        if targets is None or daily_goals is None:
            config = load_program_config()
            if targets is None:
                targets = week_targets_from_config(config)
            if daily_goals is None:
                daily_goals = config.get("daily_goals") or {}
        self._targets = targets
        self.calories = int(daily_goals.get("calories", DAILY_CALORIE_GOAL))
        self.hydration = int(daily_goals.get("hydration_oz", DAILY_HYDRATION_GOAL_OZ))
        self.sleep = int(daily_goals.get("sleep_hours", DAILY_SLEEP_GOAL_HOURS))

    @property
    def weeks(self) -> list[WeekTargets]:
        return list(self._targets.values())

    def targets_for(self, week: int) -> WeekTargets | None:
        return self._targets.get(week)

    def goals_for(self, week: int) -> WeeklyGoals:
        """Week targets merged with daily goals; unknown weeks get zero targets."""
        t = self._targets.get(week)
        return WeeklyGoals(
            miles=t.miles if t else 0.0,
            swim_hours=t.swim_hours if t else 0.0,
            strength_sessions=t.strength_sessions if t else 0,
            mental_training_hours=t.mental_hours if t else 0.0,
            calories=self.calories,
            hydration=self.hydration,
            sleep=self.sleep,
        )


def current_week(start_date: date | None, today: date) -> int:
    """
    Program week (1-based) for ``today``, clamped to the program length.

    Without a start date the program is assumed to be in week 1.
    """
    if start_date is None:
        return 1
    days = (today - start_date).days
    return min(max(1, days // DAYS_PER_WEEK + 1), PROGRAM_WEEKS)


def current_day(start_date: date | None, today: date) -> int:
    """Day within the program week (1-7); weekday-based when no start date is set."""
    if start_date is None:
        return today.isoweekday()
    days = (today - start_date).days
    if days < 0:
        return 1
    return days % DAYS_PER_WEEK + 1
