"""
JSON serialization for training data models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

from typing import Any

from ..core.errors import ValidationError
from ..core.models import (
    MEASURE_FIELDS,
    SCORE_FIELDS,
    Achievement,
    CompletedExerciseRecord,
    Exercise,
    HistoryRecord,
    PersonalRecord,
    ProgressEntry,
    validate_date,
)

def _require(data: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


# =============================================================================
# SESSION HISTORY
# =============================================================================


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    return {
        "id": exercise.exercise_id,
        "name": exercise.name,
        "type": exercise.category,
        "duration": exercise.duration,
        "rest_time": exercise.rest_time,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "instructions": exercise.instructions,
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    _require(data, "id", "name", "type", "duration", "rest_time", "sets", "reps")
    try:
        return Exercise(
            exercise_id=str(data["id"]),
            name=str(data["name"]),
            category=data["type"],
            duration=int(data["duration"]),
            rest_time=int(data["rest_time"]),
            sets=int(data["sets"]),
            reps=data["reps"],
            instructions=str(data.get("instructions", "")),
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid exercise: {e}") from e


def completed_exercise_to_dict(record: CompletedExerciseRecord) -> dict[str, Any]:
    """
    Convert CompletedExerciseRecord to JSON-compatible dict.

    The ``skipped`` flag is only written when set.
    """
    result: dict[str, Any] = {
        "exercise": exercise_to_dict(record.exercise),
        "completed_at": record.completed_at,
        "set": record.set_number,
    }
    if record.skipped:
        result["skipped"] = True
    return result


def dict_to_completed_exercise(data: dict[str, Any]) -> CompletedExerciseRecord:
    _require(data, "exercise", "completed_at", "set")
    return CompletedExerciseRecord(
        exercise=dict_to_exercise(data["exercise"]),
        completed_at=str(data["completed_at"]),
        set_number=int(data["set"]),
        skipped=bool(data.get("skipped", False)),
    )


def history_record_to_dict(record: HistoryRecord) -> dict[str, Any]:
    """
    Convert HistoryRecord to JSON-compatible dict.

    Args:
        record: HistoryRecord to convert

    Returns:
        Dict representation
    """
    return {
        "id": record.record_id,
        "workout_id": record.template_id,
        "name": record.name,
        "start_time": record.start_time,
        "end_time": record.end_time,
        "duration": record.elapsed_seconds,
        "completed_exercises": [completed_exercise_to_dict(r) for r in record.completed_exercises],
        "total_exercises": record.total_exercises,
        "completed_count": record.completed_count,
        "stopped": record.stopped,
    }


def dict_to_history_record(data: dict[str, Any]) -> HistoryRecord:
    """
    Convert dict to HistoryRecord.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "id", "workout_id", "name", "start_time", "end_time", "duration")
    completed = tuple(dict_to_completed_exercise(r) for r in data.get("completed_exercises", []))
    return HistoryRecord(
        record_id=str(data["id"]),
        template_id=str(data["workout_id"]),
        name=str(data["name"]),
        start_time=str(data["start_time"]),
        end_time=str(data["end_time"]),
        elapsed_seconds=int(data["duration"]),
        completed_exercises=completed,
        total_exercises=int(data.get("total_exercises", 0)),
        completed_count=int(
            data.get("completed_count", sum(1 for r in completed if not r.skipped))
        ),
        stopped=bool(data.get("stopped", False)),
    )


# =============================================================================
# PROGRESS LEDGER
# =============================================================================


def progress_entry_to_dict(entry: ProgressEntry) -> dict[str, Any]:
    """
    Convert ProgressEntry to JSON-compatible dict.

    Compact format: measures, scores and optional text that are None are
    omitted entirely.
    """
    result: dict[str, Any] = {
        "id": entry.entry_id,
        "date": entry.date,
        "week": entry.week,
        "day": entry.day,
        "type": entry.entry_type,
        "activity": entry.activity,
        "completed": entry.completed,
        "created_at": entry.created_at,
    }
    if entry.notes is not None:
        result["notes"] = entry.notes
    if entry.updated_at is not None:
        result["updated_at"] = entry.updated_at
    for name in MEASURE_FIELDS + SCORE_FIELDS:
        value = getattr(entry, name)
        if value is not None:
            result[name] = value
    return result


def dict_to_progress_entry(data: dict[str, Any]) -> ProgressEntry:
    """
    Convert dict to ProgressEntry.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Progress entry must be a mapping, got {type(data).__name__}")
    _require(data, "id", "date", "week", "day", "type", "activity", "created_at")

    measures = {name: data[name] for name in MEASURE_FIELDS + SCORE_FIELDS if data.get(name) is not None}
    try:
        return ProgressEntry(
            entry_id=str(data["id"]),
            date=data["date"],
            week=int(data["week"]),
            day=int(data["day"]),
            entry_type=data["type"],
            activity=str(data["activity"]),
            created_at=str(data["created_at"]),
            completed=bool(data.get("completed", True)),
            notes=data.get("notes"),
            updated_at=data.get("updated_at"),
            **measures,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid progress entry {data.get('id')!r}: {e}") from e


def achievement_to_dict(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": achievement.achievement_id,
        "title": achievement.title,
        "description": achievement.description,
        "icon": achievement.icon,
        "category": achievement.category,
        "points": achievement.points,
        "date": achievement.unlocked_on or "",
    }


def dict_to_achievement(data: dict[str, Any]) -> Achievement:
    """Convert dict to Achievement; an empty ``date`` means still locked."""
    _require(data, "id", "title")
    return Achievement(
        achievement_id=str(data["id"]),
        title=str(data["title"]),
        description=str(data.get("description", "")),
        icon=str(data.get("icon", "")),
        category=data.get("category", "physical"),
        points=int(data.get("points", 0)),
        unlocked_on=data.get("date") or None,
    )


def personal_record_to_dict(record: PersonalRecord) -> dict[str, Any]:
    result: dict[str, Any] = {
        "discipline": record.discipline,
        "activity": record.activity,
        "value": record.value,
        "unit": record.unit,
        "date": record.date,
    }
    if record.previous_value is not None:
        result["previous_record"] = record.previous_value
    return result


def dict_to_personal_record(data: dict[str, Any]) -> PersonalRecord:
    _require(data, "discipline", "activity", "value", "unit", "date")
    previous = data.get("previous_record")
    return PersonalRecord(
        discipline=str(data["discipline"]),
        activity=str(data["activity"]),
        value=float(data["value"]),
        unit=str(data["unit"]),
        date=str(data["date"]),
        previous_value=float(previous) if previous is not None else None,
    )
