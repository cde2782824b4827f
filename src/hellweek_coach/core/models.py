"""
Data models for hellweek-coach.

All core dataclasses representing the exercise catalog, live sessions,
session history, the progress ledger and the reports derived from it.
Catalog and history types are frozen; ActiveSession is the only mutable
session object and is owned by SessionManager.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .config import DAYS_PER_WEEK, SCORE_MAX, SCORE_MIN
from .errors import ValidationError

ExerciseCategory = Literal["strength", "core", "cardio", "mental"]
EntryType = Literal["workout", "nutrition", "mental", "recovery", "assessment"]
AchievementCategory = Literal["physical", "mental", "nutrition", "recovery"]
SessionPhase = Literal["exercising", "resting", "completed", "stopped"]
Trend = Literal["improving", "stable", "declining"]

EXERCISE_CATEGORIES: tuple[str, ...] = ("strength", "core", "cardio", "mental")
ENTRY_TYPES: tuple[str, ...] = ("workout", "nutrition", "mental", "recovery", "assessment")

# Optional numeric measures a ProgressEntry may carry
MEASURE_FIELDS: tuple[str, ...] = (
    "duration",
    "distance",
    "reps",
    "weight",
    "sets",
    "calories",
    "protein",
    "carbs",
    "fat",
    "hydration",
    "sleep",
    "heart_rate",
)
SCORE_FIELDS: tuple[str, ...] = ("mood", "energy", "soreness", "stress", "focus")


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        Normalized YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not isinstance(date_str, str) or not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str!r}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


# =============================================================================
# CATALOG
# =============================================================================


@dataclass(frozen=True)
class Exercise:
    """One movement unit within a workout template."""

    exercise_id: str
    name: str
    category: ExerciseCategory
    duration: int  # seconds of work per set
    rest_time: int  # seconds of rest after each set
    sets: int
    reps: int | str  # numeric target or qualitative ("max", "to top")
    instructions: str = ""

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if self.category not in EXERCISE_CATEGORIES:
            raise ValueError(f"Invalid exercise category: {self.category}")
        if self.duration <= 0:
            raise ValueError("duration must be positive")
        if self.rest_time < 0:
            raise ValueError("rest_time must be non-negative")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")


@dataclass(frozen=True)
class WorkoutTemplate:
    """
    An immutable catalog entry: an ordered sequence of exercises.

    ``duration_minutes`` is the declared duration shown to the user; the
    actual session length follows from exercise durations and rests.
    """

    template_id: str
    name: str
    description: str
    duration_minutes: int
    exercises: tuple[Exercise, ...]

    def __post_init__(self) -> None:
        """Validate template data."""
        if not self.exercises:
            raise ValueError(f"Template '{self.template_id}' has no exercises")
        if self.duration_minutes < 0:
            raise ValueError("duration_minutes must be non-negative")

    @property
    def total_sets(self) -> int:
        """Number of (exercise, set) work units in the template."""
        return sum(ex.sets for ex in self.exercises)


# =============================================================================
# LIVE SESSION
# =============================================================================


@dataclass(frozen=True)
class CompletedExerciseRecord:
    """One finished (or skipped) exercise set inside a session."""

    exercise: Exercise
    completed_at: str  # ISO datetime
    set_number: int
    skipped: bool = False


@dataclass
class ActiveSession:
    """
    The single in-flight workout execution.

    Mutated only by SessionManager; observers receive deep copies.
    """

    template: WorkoutTemplate
    start_time: str  # ISO datetime
    current_exercise_index: int = 0
    current_set: int = 1
    resting: bool = False
    paused: bool = False
    countdown: int = 0
    completed_exercises: list[CompletedExerciseRecord] = field(default_factory=list)
    elapsed_seconds: int = 0
    completed: bool = False
    stopped: bool = False
    end_time: str | None = None

    @property
    def exercises(self) -> tuple[Exercise, ...]:
        return self.template.exercises

    @property
    def current_exercise(self) -> Exercise | None:
        """The exercise at the current index, or None once all are done."""
        if self.current_exercise_index < len(self.template.exercises):
            return self.template.exercises[self.current_exercise_index]
        return None

    @property
    def next_exercise(self) -> Exercise | None:
        """The exercise after the current one, if any."""
        nxt = self.current_exercise_index + 1
        if nxt < len(self.template.exercises):
            return self.template.exercises[nxt]
        return None

    @property
    def phase(self) -> SessionPhase:
        if self.stopped:
            return "stopped"
        if self.completed:
            return "completed"
        return "resting" if self.resting else "exercising"

    @property
    def is_finished(self) -> bool:
        return self.completed or self.stopped

    @property
    def done_count(self) -> int:
        """Number of non-skipped completed sets so far."""
        return sum(1 for r in self.completed_exercises if not r.skipped)


# =============================================================================
# SESSION HISTORY
# =============================================================================


@dataclass(frozen=True)
class HistoryRecord:
    """Immutable summary of a finished or stopped session."""

    record_id: str
    template_id: str
    name: str
    start_time: str  # ISO datetime
    end_time: str  # ISO datetime
    elapsed_seconds: int
    completed_exercises: tuple[CompletedExerciseRecord, ...]
    total_exercises: int
    completed_count: int
    stopped: bool = False


@dataclass(frozen=True)
class HistoryStats:
    """Aggregate view over the session history."""

    total_sessions: int
    total_seconds: int
    total_exercises: int
    sessions_this_week: int
    average_seconds: int


# =============================================================================
# PROGRESS LEDGER
# =============================================================================


@dataclass
class ProgressEntry:
    """
    A dated, typed entry in the progress ledger.

    Measures are sparse: an entry only carries the ones that apply to it
    (a run has distance and duration, a recovery check-in has sleep and
    scores). Missing measures are None, never zero.
    """

    entry_id: str
    date: str  # ISO format: YYYY-MM-DD
    week: int
    day: int
    entry_type: EntryType
    activity: str
    created_at: str  # ISO datetime
    completed: bool = True
    notes: str | None = None
    updated_at: str | None = None

    duration: float | None = None  # minutes
    distance: float | None = None  # miles
    reps: int | None = None
    weight: float | None = None
    sets: int | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    hydration: float | None = None  # oz
    sleep: float | None = None  # hours
    heart_rate: int | None = None

    mood: int | None = None
    energy: int | None = None
    soreness: int | None = None
    stress: int | None = None
    focus: int | None = None

    def __post_init__(self) -> None:
        """Validate entry data."""
        validate_date(self.date)

        if self.entry_type not in ENTRY_TYPES:
            raise ValueError(f"Invalid entry_type: {self.entry_type}")
        if self.week < 1:
            raise ValueError("week must be positive")
        if not 1 <= self.day <= DAYS_PER_WEEK:
            raise ValueError(f"day must be between 1 and {DAYS_PER_WEEK}")

        for name in MEASURE_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative")

        for name in SCORE_FIELDS:
            value = getattr(self, name)
            if value is not None and not SCORE_MIN <= value <= SCORE_MAX:
                raise ValueError(f"{name} must be between {SCORE_MIN} and {SCORE_MAX}")

    def measure(self, name: str) -> float | None:
        """Return a numeric measure or score by field name."""
        if name not in MEASURE_FIELDS and name not in SCORE_FIELDS:
            raise KeyError(f"Unknown measure: {name}")
        return getattr(self, name)


@dataclass
class Achievement:
    """A single-fire milestone; ``unlocked_on`` stays None until earned."""

    achievement_id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    points: int = 0
    unlocked_on: str | None = None  # ISO date

    @property
    def unlocked(self) -> bool:
        return self.unlocked_on is not None


@dataclass
class PersonalRecord:
    """Best known value for one tracked discipline."""

    discipline: str  # normalized key, e.g. "run", "pushups"
    activity: str  # label of the entry that set the record
    value: float
    unit: str
    date: str  # ISO date
    previous_value: float | None = None

    @property
    def improvement(self) -> float | None:
        if self.previous_value is None:
            return None
        return self.value - self.previous_value


# =============================================================================
# DERIVED REPORTS
# =============================================================================


@dataclass(frozen=True)
class WeekTargets:
    """Program targets for one week, read from program.yaml."""

    week: int
    focus: str
    miles: float
    swim_hours: float
    strength_sessions: int
    mental_hours: float


@dataclass(frozen=True)
class WeeklyGoals:
    """Week targets plus the daily goals shown alongside a roll-up."""

    miles: float
    swim_hours: float
    strength_sessions: int
    mental_training_hours: float
    calories: int
    hydration: int
    sleep: int


@dataclass(frozen=True)
class WeeklyRollup:
    """Per-week aggregate of ledger entries."""

    week: int
    start_date: str | None
    end_date: str | None
    total_workouts: int
    completed_workouts: int
    total_distance: float
    total_time: float
    total_calories: float
    average_heart_rate: float
    average_sleep: float
    average_mood: float
    average_energy: float
    completion_rate: float
    goals: WeeklyGoals
    achievements: tuple[Achievement, ...] = ()


@dataclass(frozen=True)
class StreakData:
    current_workout: int = 0
    longest_workout: int = 0
    current_nutrition: int = 0
    longest_nutrition: int = 0
    current_mental: int = 0
    longest_mental: int = 0


@dataclass(frozen=True)
class TrendReport:
    fitness: Trend = "stable"
    nutrition: Trend = "stable"
    mental: Trend = "stable"
    recovery: Trend = "stable"
    overall: Trend = "stable"


@dataclass(frozen=True)
class ProgressSummary:
    """Program-wide totals, records, streaks and trends."""

    total_weeks: int
    current_week: int
    total_workouts: int
    completed_workouts: int
    total_distance: float
    total_time: float
    total_calories: float
    average_completion_rate: float
    personal_records: tuple[PersonalRecord, ...]
    streaks: StreakData
    trends: TrendReport


@dataclass(frozen=True)
class WorkoutStats:
    total_workouts: int
    completed_workouts: int
    completion_rate: float
    total_duration: float
    average_duration: float
    total_calories: float
    average_calories: float
    activity_counts: dict[str, int]


@dataclass(frozen=True)
class NutritionStats:
    total_meals: int
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    average_calories: float
    average_protein: float


@dataclass(frozen=True)
class RecoveryStats:
    total_logs: int
    average_sleep: float
    average_heart_rate: float
    average_energy: float
    average_stress: float
    average_soreness: float


@dataclass(frozen=True)
class PeriodReport:
    """Workout, nutrition and recovery stats over the last ``days`` days."""

    days: int
    start_date: str
    end_date: str
    workouts: WorkoutStats
    nutrition: NutritionStats
    recovery: RecoveryStats
    trends: TrendReport


@dataclass(frozen=True)
class LogResult:
    """Outcome of logging one ledger entry."""

    entry: ProgressEntry
    unlocked: tuple[Achievement, ...] = ()
    records: tuple[PersonalRecord, ...] = ()
