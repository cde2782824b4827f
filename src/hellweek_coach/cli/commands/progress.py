"""Progress ledger commands: log, entries, update-entry, delete-entry, start-date."""

import json
from datetime import date
from typing import Annotated, Any, Optional

import typer

from ...companion import TrainingCompanion
from ...core.errors import LedgerWriteError, RecordNotFoundError, StorageError
from ...core.models import ENTRY_TYPES, LogResult
from ...io.serializers import ValidationError, progress_entry_to_dict, validate_date
from .. import views
from ..app import DataDirOption, JsonOption, app, get_companion

# Measure options shared by log and update-entry
Duration = Annotated[Optional[float], typer.Option("--duration", help="Minutes")]
Distance = Annotated[Optional[float], typer.Option("--distance", help="Miles")]
Reps = Annotated[Optional[int], typer.Option("--reps", help="Repetitions")]
Weight = Annotated[Optional[float], typer.Option("--weight", help="Load or bodyweight")]
Sets = Annotated[Optional[int], typer.Option("--sets", help="Sets performed")]
Calories = Annotated[Optional[float], typer.Option("--calories", help="kcal burned or eaten")]
Protein = Annotated[Optional[float], typer.Option("--protein", help="Grams of protein")]
Carbs = Annotated[Optional[float], typer.Option("--carbs", help="Grams of carbohydrate")]
Fat = Annotated[Optional[float], typer.Option("--fat", help="Grams of fat")]
Hydration = Annotated[Optional[float], typer.Option("--hydration", help="Fluid ounces")]
Sleep = Annotated[Optional[float], typer.Option("--sleep", help="Hours slept")]
HeartRate = Annotated[Optional[int], typer.Option("--heart-rate", help="Average heart rate (bpm)")]
Mood = Annotated[Optional[int], typer.Option("--mood", help="Score 1-10")]
Energy = Annotated[Optional[int], typer.Option("--energy", help="Score 1-10")]
Soreness = Annotated[Optional[int], typer.Option("--soreness", help="Score 1-10")]
Stress = Annotated[Optional[int], typer.Option("--stress", help="Score 1-10")]
Focus = Annotated[Optional[int], typer.Option("--focus", help="Score 1-10")]
Notes = Annotated[Optional[str], typer.Option("--notes", "-n", help="Free-form notes")]


def _given(**values: Any) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _resolve_entry_id(companion: TrainingCompanion, prefix: str) -> str:
    """Expand a (possibly shortened) entry id as shown by 'entries'."""
    matches = [e.entry_id for e in companion.get_ledger_entries() if e.entry_id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        views.print_error(f"No entry with ID '{prefix}'")
    else:
        views.print_error(f"Entry ID '{prefix}' is ambiguous ({len(matches)} matches)")
    raise typer.Exit(1)


def _announce(result: LogResult) -> None:
    for a in result.unlocked:
        views.print_success(f"★ Achievement unlocked: {a.title} (+{a.points} pts)")
    for r in result.records:
        if r.previous_value is not None:
            views.print_success(
                f"New personal record ({r.discipline}): {r.value:g} {r.unit}, "
                f"up from {r.previous_value:g}"
            )
        else:
            views.print_success(f"First personal record ({r.discipline}): {r.value:g} {r.unit}")


@app.command("log")
def log(
    entry_type: Annotated[
        str,
        typer.Option("--type", "-t", help=f"Entry type: {' | '.join(ENTRY_TYPES)}"),
    ],
    activity: Annotated[
        str,
        typer.Option("--activity", "-a", help="What was done, e.g. '4-Mile Run' or 'Breakfast'"),
    ],
    entry_date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Entry date (YYYY-MM-DD, default: today)"),
    ] = None,
    week: Annotated[
        Optional[int],
        typer.Option("--week", "-w", help="Program week (default: current week)"),
    ] = None,
    day: Annotated[
        Optional[int],
        typer.Option("--day", help="Day of the program week, 1-7 (default: today)"),
    ] = None,
    incomplete: Annotated[
        bool,
        typer.Option("--incomplete", help="Record the activity as not completed"),
    ] = False,
    duration: Duration = None,
    distance: Distance = None,
    reps: Reps = None,
    weight: Weight = None,
    sets: Sets = None,
    calories: Calories = None,
    protein: Protein = None,
    carbs: Carbs = None,
    fat: Fat = None,
    hydration: Hydration = None,
    sleep: Sleep = None,
    heart_rate: HeartRate = None,
    mood: Mood = None,
    energy: Energy = None,
    soreness: Soreness = None,
    stress: Stress = None,
    focus: Focus = None,
    notes: Notes = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a workout, meal, mental-training, recovery or assessment entry.

    Examples:
        hellweek-coach log -t workout -a "4-Mile Run" --distance 4 --duration 32
        hellweek-coach log -t nutrition -a Breakfast --calories 900 --protein 45
        hellweek-coach log -t recovery -a "Morning check-in" --sleep 7.5 --mood 8
    """
    companion = get_companion(data_dir)
    measures = _given(
        duration=duration, distance=distance, reps=reps, weight=weight, sets=sets,
        calories=calories, protein=protein, carbs=carbs, fat=fat, hydration=hydration,
        sleep=sleep, heart_rate=heart_rate, mood=mood, energy=energy,
        soreness=soreness, stress=stress, focus=focus,
    )

    try:
        result = companion.log_entry(
            entry_type,
            activity,
            entry_date=entry_date,
            week=week,
            day=day,
            completed=not incomplete,
            notes=notes,
            **measures,
        )
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except LedgerWriteError as e:
        views.print_error(f"Entry was not saved: {e}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(progress_entry_to_dict(result.entry), indent=2))
        return

    entry = result.entry
    views.print_success(
        f"Logged {entry.entry_type} '{entry.activity}' on {entry.date} "
        f"(week {entry.week}, day {entry.day}), id {entry.entry_id[:8]}"
    )
    _announce(result)


@app.command("entries")
def entries(
    week: Annotated[
        Optional[int],
        typer.Option("--week", "-w", help="Only entries for this program week"),
    ] = None,
    start: Annotated[
        Optional[str],
        typer.Option("--from", help="First date to include (YYYY-MM-DD)"),
    ] = None,
    end: Annotated[
        Optional[str],
        typer.Option("--to", help="Last date to include (YYYY-MM-DD)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List progress entries, newest logged first.
    """
    try:
        start_date = date.fromisoformat(validate_date(start)) if start else None
        end_date = date.fromisoformat(validate_date(end)) if end else None
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    companion = get_companion(data_dir)
    found = companion.get_ledger_entries(start_date, end_date, week)

    if json_out:
        print(json.dumps([progress_entry_to_dict(e) for e in found], indent=2))
        return

    views.print_entries(found)


@app.command("update-entry")
def update_entry(
    entry_id: Annotated[
        str,
        typer.Argument(help="Entry ID or unique prefix (see 'entries')"),
    ],
    activity: Annotated[
        Optional[str],
        typer.Option("--activity", "-a", help="New activity label"),
    ] = None,
    completed: Annotated[
        Optional[bool],
        typer.Option("--completed/--incomplete", help="Mark as completed or not"),
    ] = None,
    duration: Duration = None,
    distance: Distance = None,
    reps: Reps = None,
    weight: Weight = None,
    sets: Sets = None,
    calories: Calories = None,
    protein: Protein = None,
    carbs: Carbs = None,
    fat: Fat = None,
    hydration: Hydration = None,
    sleep: Sleep = None,
    heart_rate: HeartRate = None,
    mood: Mood = None,
    energy: Energy = None,
    soreness: Soreness = None,
    stress: Stress = None,
    focus: Focus = None,
    notes: Notes = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Change fields of an existing entry.
    """
    companion = get_companion(data_dir)
    changes = _given(
        activity=activity, completed=completed, notes=notes,
        duration=duration, distance=distance, reps=reps, weight=weight, sets=sets,
        calories=calories, protein=protein, carbs=carbs, fat=fat, hydration=hydration,
        sleep=sleep, heart_rate=heart_rate, mood=mood, energy=energy,
        soreness=soreness, stress=stress, focus=focus,
    )
    if not changes:
        views.print_warning("Nothing to update.")
        raise typer.Exit(0)

    full_id = _resolve_entry_id(companion, entry_id)
    try:
        entry = companion.update_entry(full_id, **changes)
    except (RecordNotFoundError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except LedgerWriteError as e:
        views.print_error(f"Entry was not updated: {e}")
        raise typer.Exit(1)

    views.print_success(f"Updated {entry.entry_type} '{entry.activity}' on {entry.date}")


@app.command("delete-entry")
def delete_entry(
    entry_id: Annotated[
        str,
        typer.Argument(help="Entry ID or unique prefix (see 'entries')"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove an entry from the progress log.
    """
    companion = get_companion(data_dir)
    full_id = _resolve_entry_id(companion, entry_id)
    target = next(e for e in companion.get_ledger_entries() if e.entry_id == full_id)
    views.console.print(f"Entry to delete: [bold]{target.date}[/bold] {target.entry_type} '{target.activity}'")

    if not force and not views.confirm_action("Delete this entry?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        companion.delete_entry(full_id)
    except LedgerWriteError as e:
        views.print_error(f"Entry was not deleted: {e}")
        raise typer.Exit(1)

    views.print_success(f"Deleted {target.entry_type} '{target.activity}' on {target.date}")


@app.command("start-date")
def start_date(
    value: Annotated[
        Optional[str],
        typer.Argument(help="Program start date (YYYY-MM-DD); omit to show the current one"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show or set the training start date that defines program weeks.
    """
    companion = get_companion(data_dir)

    if value is None:
        current = companion.get_start_date()
        if current is None:
            views.print_info("No start date set; entries default to week 1.")
        else:
            views.console.print(
                f"Started [bold]{current.isoformat()}[/bold]: "
                f"week {companion.tracker.current_week()}, day {companion.tracker.current_day()}"
            )
        return

    try:
        start = date.fromisoformat(validate_date(value))
        companion.set_start_date(start)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except StorageError as e:
        views.print_error(f"Start date was not saved: {e}")
        raise typer.Exit(1)

    views.print_success(f"Training start date set to {start.isoformat()}")
