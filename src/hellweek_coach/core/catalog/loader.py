"""
YAML → WorkoutTemplate loader.

Loads workout templates from individual YAML files in the bundled
``src/hellweek_coach/workouts/`` directory.  Each file (e.g.
hell_week_prep.yaml) holds one template with its ordered exercise list.

User overrides: place matching files in ``~/.hellweek-coach/workouts/``.
A user file is deep-merged over the bundled template of the same name, so
only changed keys need to be listed.  A user file with no bundled
counterpart is added as a new template.

Usage (internal, called by registry.py):
    from .loader import load_templates_from_yaml
    templates = load_templates_from_yaml()   # dict or None on failure
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from ..engine.config_loader import deep_merge, get_user_data_dir, load_yaml_file
from ..models import Exercise, WorkoutTemplate

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {"id", "name", "type", "duration", "rest_time", "sets", "reps"}
)

_REQUIRED_TEMPLATE_FIELDS: frozenset[str] = frozenset(
    {"id", "name", "description", "duration", "exercises"}
)


def exercise_from_dict(d: dict) -> Exercise:
    """Convert a raw dict (from YAML) to an Exercise, raising ValueError on missing fields."""
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"Exercise missing fields: {sorted(missing)}")

    reps = d["reps"]
    return Exercise(
        exercise_id=str(d["id"]),
        name=str(d["name"]),
        category=str(d["type"]),  # type: ignore[arg-type]
        duration=int(d["duration"]),
        rest_time=int(d["rest_time"]),
        sets=int(d["sets"]),
        reps=reps if isinstance(reps, int) else str(reps),
        instructions=str(d.get("instructions", "")).strip(),
    )


def template_from_dict(d: dict) -> WorkoutTemplate:
    """Convert a raw dict (from YAML) to a WorkoutTemplate.

    Raises ValueError if any required field is absent or an exercise is invalid.
    """
    missing = _REQUIRED_TEMPLATE_FIELDS - set(d)
    if missing:
        raise ValueError(f"WorkoutTemplate missing fields: {sorted(missing)}")

    raw_exercises = d["exercises"]
    if not isinstance(raw_exercises, list):
        raise ValueError("exercises must be a list")

    return WorkoutTemplate(
        template_id=str(d["id"]),
        name=str(d["name"]),
        description=str(d["description"]),
        duration_minutes=int(d["duration"]),
        exercises=tuple(exercise_from_dict(e) for e in raw_exercises),
    )


def _get_bundled_workouts_dir() -> Path | None:
    """Return path to the bundled workouts/ data directory, or None if not found."""
    # loader.py lives at src/hellweek_coach/core/catalog/loader.py
    candidate = Path(__file__).parent.parent.parent / "workouts"
    return candidate if candidate.is_dir() else None


def _get_user_workouts_dir() -> Path | None:
    """Return ~/.hellweek-coach/workouts/ if it exists, else None."""
    p = get_user_data_dir() / "workouts"
    return p if p.is_dir() else None


def load_templates_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, WorkoutTemplate] | None:
    """Return {template_id: WorkoutTemplate} loaded from per-template YAML files.

    Bundled files are read in file-name order; a user file with the same
    stem is deep-merged over its bundled counterpart.  Files that fail
    validation are skipped with a warning.

    Returns None (rather than raising) when nothing could be loaded, so the
    registry decides how to fail.
    """
    if bundled_dir is None:
        bundled_dir = _get_bundled_workouts_dir()
    if user_dir is None:
        user_dir = _get_user_workouts_dir()

    if bundled_dir is None and user_dir is None:
        return None

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    raw_by_stem: list[tuple[str, dict]] = []
    for stem, bundled_path in stems.items():
        raw = load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                raw = deep_merge(raw, load_yaml_file(user_path))
        raw_by_stem.append((stem, raw))

    for p in user_only:
        raw = load_yaml_file(p)
        if raw:
            raw_by_stem.append((p.stem, raw))

    result: dict[str, WorkoutTemplate] = {}
    for stem, raw in raw_by_stem:
        try:
            template = template_from_dict(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Skipping workout template '{}': {}", stem, exc)
            continue
        result[template.template_id] = template

    return result if result else None
