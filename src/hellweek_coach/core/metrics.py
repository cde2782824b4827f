"""
Pure aggregation functions over the progress ledger.

Every function takes the entries it needs and returns a fresh value; no
aggregate state is cached between calls.  Empty inputs produce zero or
neutral results (0 %, 0 streak, "stable") rather than errors.
"""

from datetime import date, timedelta
from typing import Iterable, Sequence

from .config import (
    REC_COMPLETION_RATE_MIN,
    REC_MENTAL_ENTRIES_MIN,
    REC_NUTRITION_ENTRIES_MIN,
    REC_SLEEP_HOURS_MIN,
    REC_WORKOUT_STREAK_MIN,
    TREND_DECLINING_RATIO,
    TREND_IMPROVING_RATIO,
    TREND_WINDOW_DAYS,
)
from .models import (
    Achievement,
    NutritionStats,
    PeriodReport,
    PersonalRecord,
    ProgressEntry,
    ProgressSummary,
    RecoveryStats,
    StreakData,
    Trend,
    TrendReport,
    WeeklyGoals,
    WeeklyRollup,
    WorkoutStats,
)

# =============================================================================
# Basic helpers
# =============================================================================


def entry_date(entry: ProgressEntry) -> date:
    return date.fromisoformat(entry.date)


def of_type(entries: Iterable[ProgressEntry], entry_type: str) -> list[ProgressEntry]:
    return [e for e in entries if e.entry_type == entry_type]


def completed_workouts(entries: Iterable[ProgressEntry]) -> list[ProgressEntry]:
    return [e for e in entries if e.entry_type == "workout" and e.completed]


def total_of(entries: Iterable[ProgressEntry], measure: str) -> float:
    """Sum of a measure; entries without it contribute nothing."""
    return sum(e.measure(measure) or 0 for e in entries)


def mean_of(entries: Iterable[ProgressEntry], measure: str) -> float:
    """
    Arithmetic mean of a measure over entries that supplied it.

    Entries lacking the measure are excluded, not counted as zero.

    Returns:
        Mean value, or 0.0 if no entry has the measure
    """
    values = [v for v in (e.measure(measure) for e in entries) if v is not None]
    return sum(values) / len(values) if values else 0.0


def in_window(entries: Iterable[ProgressEntry], after: date, until: date) -> list[ProgressEntry]:
    """Entries dated in the half-open window (after, until]."""
    lo, hi = after.isoformat(), until.isoformat()
    return [e for e in entries if lo < e.date <= hi]


def completion_rate(entries: Sequence[ProgressEntry]) -> float:
    """
    Completed workouts as a percentage of all workout entries.

    Returns:
        0-100, or 0.0 when there are no workout entries
    """
    workouts = of_type(entries, "workout")
    if not workouts:
        return 0.0
    done = sum(1 for e in workouts if e.completed)
    return done / len(workouts) * 100


# =============================================================================
# Weekly roll-up
# =============================================================================


def weekly_rollup(
    entries: Sequence[ProgressEntry],
    week: int,
    goals: WeeklyGoals,
    achievements: Sequence[Achievement] = (),
) -> WeeklyRollup:
    """
    Aggregate one program week of ledger entries against its goals.

    Args:
        entries: Ledger entries (any weeks; filtered here)
        week: Program week number
        goals: Targets for the week
        achievements: Achievements to attach if unlocked within the week's dates

    Returns:
        WeeklyRollup; an empty week yields zeros and no dates
    """
    week_entries = [e for e in entries if e.week == week]
    dates = sorted(e.date for e in week_entries)
    start = dates[0] if dates else None
    end = dates[-1] if dates else None

    workouts = of_type(week_entries, "workout")
    unlocked_in_week: tuple[Achievement, ...] = ()
    if start is not None and end is not None:
        unlocked_in_week = tuple(
            a for a in achievements
            if a.unlocked_on is not None and start <= a.unlocked_on <= end
        )

    return WeeklyRollup(
        week=week,
        start_date=start,
        end_date=end,
        total_workouts=len(workouts),
        completed_workouts=sum(1 for e in workouts if e.completed),
        total_distance=total_of(week_entries, "distance"),
        total_time=total_of(week_entries, "duration"),
        total_calories=total_of(week_entries, "calories"),
        average_heart_rate=mean_of(week_entries, "heart_rate"),
        average_sleep=mean_of(week_entries, "sleep"),
        average_mood=mean_of(week_entries, "mood"),
        average_energy=mean_of(week_entries, "energy"),
        completion_rate=completion_rate(week_entries),
        goals=goals,
        achievements=unlocked_in_week,
    )


# =============================================================================
# Streaks
# =============================================================================


def _distinct_days(entries: Iterable[ProgressEntry]) -> list[date]:
    return sorted({entry_date(e) for e in entries})


def current_streak(entries: Iterable[ProgressEntry], today: date | None = None) -> int:
    """
    Consecutive calendar days with an entry, counting back from today.

    Day 0 is today: a streak only exists if there is an entry today, and it
    grows by one for each immediately preceding day that also has one.
    Several entries on the same day count once; future-dated entries are
    ignored.
    """
    today = today or date.today()
    streak = 0
    for day in reversed(_distinct_days(entries)):
        if day > today:
            continue
        if (today - day).days == streak:
            streak += 1
        else:
            break
    return streak


def longest_streak(entries: Iterable[ProgressEntry]) -> int:
    """
    Longest run of consecutive calendar days with at least one entry.

    A gap of more than one day ends the run.
    """
    days = _distinct_days(entries)
    if not days:
        return 0

    longest = 1
    running = 1
    for prev, curr in zip(days, days[1:]):
        if (curr - prev).days == 1:
            running += 1
        else:
            running = 1
        longest = max(longest, running)
    return longest


def compute_streaks(entries: Sequence[ProgressEntry], today: date | None = None) -> StreakData:
    """Current and longest streaks for completed workouts, nutrition and mental entries."""
    workouts = completed_workouts(entries)
    nutrition = of_type(entries, "nutrition")
    mental = of_type(entries, "mental")
    return StreakData(
        current_workout=current_streak(workouts, today),
        longest_workout=longest_streak(workouts),
        current_nutrition=current_streak(nutrition, today),
        longest_nutrition=longest_streak(nutrition),
        current_mental=current_streak(mental, today),
        longest_mental=longest_streak(mental),
    )


# =============================================================================
# Trends
# =============================================================================


def classify_trend(recent: float, older: float) -> Trend:
    """
    Compare two activity levels with a ±10 % dead band.

    improving if recent > older × 1.1, declining if recent < older × 0.9,
    otherwise stable.  Both zero is stable.
    """
    if recent > older * TREND_IMPROVING_RATIO:
        return "improving"
    if recent < older * TREND_DECLINING_RATIO:
        return "declining"
    return "stable"


def trend_windows(
    entries: Sequence[ProgressEntry],
    today: date,
    window_days: int = TREND_WINDOW_DAYS,
) -> tuple[list[ProgressEntry], list[ProgressEntry]]:
    """
    Split entries into the trailing window and the one before it.

    Recent is (today - window, today]; older is (today - 2·window, today - window].
    """
    boundary = today - timedelta(days=window_days)
    recent = in_window(entries, boundary, today)
    older = in_window(entries, boundary - timedelta(days=window_days), boundary)
    return recent, older


def compute_trends(entries: Sequence[ProgressEntry], today: date | None = None) -> TrendReport:
    """
    Trend per area: completed workouts (fitness), nutrition, mental and
    recovery entry counts, and the count of all entries (overall).
    """
    today = today or date.today()
    recent, older = trend_windows(entries, today)

    def _trend(select) -> Trend:
        return classify_trend(len(select(recent)), len(select(older)))

    return TrendReport(
        fitness=_trend(completed_workouts),
        nutrition=_trend(lambda es: of_type(es, "nutrition")),
        mental=_trend(lambda es: of_type(es, "mental")),
        recovery=_trend(lambda es: of_type(es, "recovery")),
        overall=_trend(list),
    )


# =============================================================================
# Summary and recommendations
# =============================================================================


def progress_summary(
    entries: Sequence[ProgressEntry],
    current_week: int,
    records: Sequence[PersonalRecord] = (),
    today: date | None = None,
) -> ProgressSummary:
    """
    Program-wide totals plus streaks, trends and personal records.

    The average completion rate is taken over weeks that have entries.
    """
    total_weeks = max((e.week for e in entries), default=0)
    weekly_rates = [
        completion_rate([e for e in entries if e.week == week])
        for week in range(1, total_weeks + 1)
        if any(e.week == week for e in entries)
    ]
    workouts = of_type(entries, "workout")

    return ProgressSummary(
        total_weeks=total_weeks,
        current_week=current_week,
        total_workouts=len(workouts),
        completed_workouts=sum(1 for e in workouts if e.completed),
        total_distance=total_of(entries, "distance"),
        total_time=total_of(entries, "duration"),
        total_calories=total_of(entries, "calories"),
        average_completion_rate=sum(weekly_rates) / len(weekly_rates) if weekly_rates else 0.0,
        personal_records=tuple(records),
        streaks=compute_streaks(entries, today),
        trends=compute_trends(entries, today),
    )


def recommendations(
    summary: ProgressSummary,
    recent_entries: Sequence[ProgressEntry],
) -> list[str]:
    """
    Plain-language suggestions from the summary and the last week of entries.

    Returns:
        At least one message; a single encouragement when nothing needs work
    """
    messages: list[str] = []

    if summary.average_completion_rate < REC_COMPLETION_RATE_MIN:
        messages.append(
            f"Focus on consistency - try to complete at least "
            f"{REC_COMPLETION_RATE_MIN:.0f}% of your workouts"
        )

    if summary.streaks.current_workout < REC_WORKOUT_STREAK_MIN:
        messages.append(
            f"Build a workout streak - aim for at least {REC_WORKOUT_STREAK_MIN} consecutive days"
        )

    sleep_entries = [e for e in recent_entries if e.sleep is not None]
    if sleep_entries and mean_of(sleep_entries, "sleep") < REC_SLEEP_HOURS_MIN:
        messages.append("Prioritize sleep - aim for at least 7-8 hours per night")

    if len(of_type(recent_entries, "nutrition")) < REC_NUTRITION_ENTRIES_MIN:
        messages.append(
            f"Track your nutrition more consistently - log at least "
            f"{REC_NUTRITION_ENTRIES_MIN} meals per day"
        )

    if len(of_type(recent_entries, "mental")) < REC_MENTAL_ENTRIES_MIN:
        messages.append("Don't skip mental training - it's crucial for Hell Week success")

    if not messages:
        messages.append("Great progress! Keep up the excellent work")

    return messages


# =============================================================================
# Period report
# =============================================================================


def period_report(
    entries: Sequence[ProgressEntry],
    days: int,
    today: date | None = None,
) -> PeriodReport:
    """
    Workout, nutrition and recovery statistics over the last ``days`` days.

    The window is inclusive: today and the ``days`` days before it.
    """
    if days < 1:
        raise ValueError("days must be positive")
    today = today or date.today()
    start = today - timedelta(days=days)
    window = [e for e in entries if start.isoformat() <= e.date <= today.isoformat()]

    workouts = of_type(window, "workout")
    activity_counts: dict[str, int] = {}
    for e in workouts:
        activity_counts[e.activity or "unknown"] = activity_counts.get(e.activity or "unknown", 0) + 1
    total_duration = total_of(workouts, "duration")
    total_burn = total_of(workouts, "calories")

    meals = of_type(window, "nutrition")
    meal_calories = total_of(meals, "calories")
    meal_protein = total_of(meals, "protein")

    recovery = of_type(window, "recovery")

    return PeriodReport(
        days=days,
        start_date=start.isoformat(),
        end_date=today.isoformat(),
        workouts=WorkoutStats(
            total_workouts=len(workouts),
            completed_workouts=sum(1 for e in workouts if e.completed),
            completion_rate=completion_rate(workouts),
            total_duration=total_duration,
            average_duration=total_duration / len(workouts) if workouts else 0.0,
            total_calories=total_burn,
            average_calories=total_burn / len(workouts) if workouts else 0.0,
            activity_counts=activity_counts,
        ),
        nutrition=NutritionStats(
            total_meals=len(meals),
            total_calories=meal_calories,
            total_protein=meal_protein,
            total_carbs=total_of(meals, "carbs"),
            total_fat=total_of(meals, "fat"),
            average_calories=meal_calories / len(meals) if meals else 0.0,
            average_protein=meal_protein / len(meals) if meals else 0.0,
        ),
        recovery=RecoveryStats(
            total_logs=len(recovery),
            average_sleep=mean_of(recovery, "sleep"),
            average_heart_rate=mean_of(recovery, "heart_rate"),
            average_energy=mean_of(recovery, "energy"),
            average_stress=mean_of(recovery, "stress"),
            average_soreness=mean_of(recovery, "soreness"),
        ),
        trends=compute_trends(entries, today),
    )
