"""
Configuration constants for the training companion.

All adjustable parameters are centralized here for easy tuning.
Per-week program targets live in program.yaml (see engine/config_loader.py).
"""

from typing import Final

# =============================================================================
# SESSION CLOCK
# =============================================================================

TICK_PERIOD_MS: Final[int] = 1000  # One tick per second drives the active session

# =============================================================================
# SESSION HISTORY
# =============================================================================

HISTORY_RETENTION: Final[int] = 100  # Newest-first; older records are dropped
HISTORY_RECENT_DAYS: Final[int] = 7  # Window for "sessions this week"

# =============================================================================
# STORAGE KEYS (key-value store)
# =============================================================================

HISTORY_KEY: Final[str] = "workout_history"
LEDGER_KEY: Final[str] = "progress_entries"
ACHIEVEMENTS_KEY: Final[str] = "achievements"
PERSONAL_RECORDS_KEY: Final[str] = "personal_records"
START_DATE_KEY: Final[str] = "training_start_date"

# =============================================================================
# PROGRAM
# =============================================================================

PROGRAM_WEEKS: Final[int] = 12
DAYS_PER_WEEK: Final[int] = 7

# Daily goals attached to every weekly roll-up
DAILY_CALORIE_GOAL: Final[int] = 4000
DAILY_HYDRATION_GOAL_OZ: Final[int] = 128
DAILY_SLEEP_GOAL_HOURS: Final[int] = 8

# =============================================================================
# TRENDS
# =============================================================================

TREND_WINDOW_DAYS: Final[int] = 7  # Recent window; the older window is the 7 before it
TREND_IMPROVING_RATIO: Final[float] = 1.1  # recent > older * 1.1  -> improving
TREND_DECLINING_RATIO: Final[float] = 0.9  # recent < older * 0.9  -> declining

# =============================================================================
# ACHIEVEMENTS
# =============================================================================

MENTAL_MASTER_ENTRIES: Final[int] = 7
WEEK_COMPLETE_RATE: Final[float] = 100.0

# =============================================================================
# PERSONAL RECORDS
# =============================================================================

# discipline -> (measure field on ProgressEntry, unit)
RECORD_DISCIPLINES: Final[dict[str, tuple[str, str]]] = {
    "run": ("distance", "miles"),
    "swim": ("distance", "miles"),
    "pushups": ("reps", "reps"),
    "pullups": ("reps", "reps"),
    "situps": ("reps", "reps"),
}

# =============================================================================
# RECOMMENDATIONS
# =============================================================================

REC_COMPLETION_RATE_MIN: Final[float] = 80.0
REC_WORKOUT_STREAK_MIN: Final[int] = 3
REC_SLEEP_HOURS_MIN: Final[float] = 7.0
REC_NUTRITION_ENTRIES_MIN: Final[int] = 5
REC_MENTAL_ENTRIES_MIN: Final[int] = 3

# =============================================================================
# SCORES
# =============================================================================

SCORE_MIN: Final[int] = 1
SCORE_MAX: Final[int] = 10
