"""Analysis commands: rollup, streaks, trends, achievements, records, summary, report."""

import dataclasses
import json
from typing import Annotated, Optional

import typer

from ...core.config import PROGRAM_WEEKS
from ...io.serializers import achievement_to_dict, personal_record_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_companion


def _dump(obj) -> None:
    print(json.dumps(dataclasses.asdict(obj), indent=2))


@app.command("rollup")
def rollup(
    week: Annotated[
        Optional[int],
        typer.Argument(help=f"Program week 1-{PROGRAM_WEEKS} (default: current week)"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Weekly totals and averages against the week's program targets.
    """
    companion = get_companion(data_dir)
    if week is None:
        week = companion.tracker.current_week()
    if week < 1:
        views.print_error("Week must be positive")
        raise typer.Exit(1)

    result = companion.get_weekly_rollup(week)
    if json_out:
        _dump(result)
        return

    views.print_rollup(result)


@app.command("streaks")
def streaks(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Current and longest runs of consecutive days per area.
    """
    result = get_companion(data_dir).get_streaks()
    if json_out:
        _dump(result)
        return

    views.print_streaks(result)


@app.command("trends")
def trends(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Compare activity in the last 7 days with the 7 days before.
    """
    result = get_companion(data_dir).get_trends()
    if json_out:
        _dump(result)
        return

    views.print_trends(result)


@app.command("achievements")
def achievements(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List achievements and when they were unlocked.
    """
    result = get_companion(data_dir).get_achievements()
    if json_out:
        print(json.dumps([achievement_to_dict(a) for a in result], indent=2))
        return

    views.print_achievements(result)


@app.command("records")
def records(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Personal bests for running, swimming and calisthenics.
    """
    result = get_companion(data_dir).get_personal_records()
    if json_out:
        print(json.dumps([personal_record_to_dict(r) for r in result], indent=2))
        return

    views.print_records(result)


@app.command("summary")
def summary(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Program-wide totals, streaks and recommendations.
    """
    companion = get_companion(data_dir)
    result = companion.get_summary()
    advice = companion.get_recommendations()

    if json_out:
        output = dataclasses.asdict(result)
        output["recommendations"] = advice
        print(json.dumps(output, indent=2))
        return

    views.print_summary(result, advice)


@app.command("report")
def report(
    days: Annotated[
        int,
        typer.Option("--days", "-n", help="Number of days to cover"),
    ] = 7,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Workout, nutrition and recovery statistics for the last N days.
    """
    try:
        result = get_companion(data_dir).get_period_report(days)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        _dump(result)
        return

    views.print_period_report(result)
