"""
Achievement unlocks and personal-record detection.

Both evaluators are pure: they take the current state plus the ledger and
return new state.  Achievements fire once and keep their first unlock date;
personal records are replaced only on strict improvement.
"""

import dataclasses
import re
from typing import Callable, Sequence

from .config import MENTAL_MASTER_ENTRIES, RECORD_DISCIPLINES, WEEK_COMPLETE_RATE
from .metrics import completed_workouts, completion_rate, of_type
from .models import Achievement, PersonalRecord, ProgressEntry

# (id, title, description, category, icon, points)
_DEFAULT_ACHIEVEMENTS: tuple[tuple[str, str, str, str, str, int], ...] = (
    ("first_workout", "First Workout", "Completed your first workout", "physical", "runner", 10),
    ("week_complete", "Week Complete", "Completed all workouts for a week", "physical", "calendar", 50),
    ("mental_master", "Mental Master", "Completed 7 days of mental training", "mental", "brain", 30),
)

Criterion = Callable[[Sequence[ProgressEntry], ProgressEntry], bool]


def default_achievements() -> list[Achievement]:
    """Fresh, locked copies of the built-in achievements."""
    return [
        Achievement(
            achievement_id=aid,
            title=title,
            description=description,
            icon=icon,
            category=category,  # type: ignore[arg-type]
            points=points,
        )
        for aid, title, description, category, icon, points in _DEFAULT_ACHIEVEMENTS
    ]


def _first_workout(entries: Sequence[ProgressEntry], trigger: ProgressEntry) -> bool:
    return len(completed_workouts(entries)) >= 1


def _week_complete(entries: Sequence[ProgressEntry], trigger: ProgressEntry) -> bool:
    week_entries = [e for e in entries if e.week == trigger.week]
    return completion_rate(week_entries) >= WEEK_COMPLETE_RATE


def _mental_master(entries: Sequence[ProgressEntry], trigger: ProgressEntry) -> bool:
    return len(of_type(entries, "mental")) >= MENTAL_MASTER_ENTRIES


CRITERIA: dict[str, Criterion] = {
    "first_workout": _first_workout,
    "week_complete": _week_complete,
    "mental_master": _mental_master,
}


def evaluate_achievements(
    achievements: Sequence[Achievement],
    entries: Sequence[ProgressEntry],
    trigger: ProgressEntry,
) -> tuple[list[Achievement], list[Achievement]]:
    """
    Unlock every locked achievement whose criterion now holds.

    Achievements that are already unlocked, or that have no known
    criterion, are returned unchanged, so evaluating twice is a no-op.

    Args:
        achievements: Current achievement state
        entries: Full ledger including ``trigger``
        trigger: The entry just logged; its date becomes the unlock date

    Returns:
        (all achievements, newly unlocked ones)
    """
    result: list[Achievement] = []
    unlocked: list[Achievement] = []
    for achievement in achievements:
        criterion = CRITERIA.get(achievement.achievement_id)
        if achievement.unlocked or criterion is None or not criterion(entries, trigger):
            result.append(achievement)
            continue
        stamped = dataclasses.replace(achievement, unlocked_on=trigger.date)
        result.append(stamped)
        unlocked.append(stamped)
    return result, unlocked


def normalize_activity(label: str) -> str:
    """Lower-case a label and drop everything but letters and digits ("Push-ups" -> "pushups")."""
    return re.sub(r"[^a-z0-9]", "", label.lower())


def matching_disciplines(label: str) -> list[str]:
    """Tracked disciplines whose key appears in the normalized activity label."""
    normalized = normalize_activity(label)
    return [d for d in RECORD_DISCIPLINES if d in normalized]


def evaluate_personal_records(
    records: Sequence[PersonalRecord],
    entry: ProgressEntry,
) -> tuple[list[PersonalRecord], list[PersonalRecord]]:
    """
    Update records from a completed workout entry.

    A discipline's record is replaced when the entry's measure is strictly
    greater than the stored value (ties keep the old record); the old value
    is carried into ``previous_value``.  Non-workout or incomplete entries,
    and missing or zero measures, leave records untouched.

    Returns:
        (all records, records created or replaced by this entry)
    """
    result = list(records)
    changed: list[PersonalRecord] = []
    if entry.entry_type != "workout" or not entry.completed or not entry.activity:
        return result, changed

    for discipline in matching_disciplines(entry.activity):
        field_name, unit = RECORD_DISCIPLINES[discipline]
        value = entry.measure(field_name)
        if not value or value <= 0:
            continue

        index = next((i for i, r in enumerate(result) if r.discipline == discipline), None)
        existing = result[index] if index is not None else None
        if existing is not None and value <= existing.value:
            continue

        record = PersonalRecord(
            discipline=discipline,
            activity=entry.activity,
            value=float(value),
            unit=unit,
            date=entry.date,
            previous_value=existing.value if existing is not None else None,
        )
        if index is None:
            result.append(record)
        else:
            result[index] = record
        changed.append(record)

    return result, changed
