"""Session commands: templates, run, history, stats."""

import dataclasses
import json
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.catalog import list_templates
from ...core.clock import ManualClock
from ...core.errors import TemplateNotFoundError
from ...core.models import ActiveSession
from ...core.session import format_time
from ...io.serializers import exercise_to_dict, history_record_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_companion

RUN_HELP = "[dim]Commands: [cyan]p[/cyan] pause  [cyan]r[/cyan] resume  [cyan]s[/cyan] skip  [cyan]q[/cyan] stop  (Enter to exit once finished)[/dim]"


def _status_printer():
    """Observer that prints a line whenever the exercise, set or phase changes."""
    last: list[tuple] = []

    def _observe(session: ActiveSession) -> None:
        key = (session.phase, session.current_exercise_index, session.current_set, session.paused)
        if last and last[0] == key:
            return
        last[:] = [key]
        views.console.print(views.format_session_line(session))

    return _observe


@app.command("templates")
def templates(json_out: JsonOption = False) -> None:
    """
    List the workouts available to run.
    """
    catalog = list_templates()

    if json_out:
        output = [
            {
                "id": t.template_id,
                "name": t.name,
                "description": t.description,
                "duration": t.duration_minutes,
                "total_sets": t.total_sets,
                "exercises": [exercise_to_dict(ex) for ex in t.exercises],
            }
            for t in catalog
        ]
        print(json.dumps(output, indent=2))
        return

    views.print_templates(catalog)


@app.command("run")
def run(
    template_id: Annotated[
        str,
        typer.Argument(help="Workout ID (see 'templates')"),
    ],
    simulate: Annotated[
        bool,
        typer.Option("--simulate", help="Run the whole workout instantly on a simulated clock"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Run a guided workout with a per-second countdown.

    Every finished session (completed or stopped) is added to the session
    history and logged as a workout in the progress ledger.
    """
    clock = ManualClock(start=datetime.now()) if simulate else None
    companion = get_companion(data_dir, clock=clock)
    companion.sessions.subscribe(_status_printer())

    try:
        session = companion.start_session(template_id)
    except TemplateNotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.console.print(
        f"[bold]{session.template.name}[/bold]: "
        f"{len(session.exercises)} exercises, {session.template.total_sets} sets"
    )

    if simulate:
        while companion.sessions.is_active:
            clock.tick()
    else:
        views.console.print(RUN_HELP)
        try:
            while companion.sessions.is_active:
                command = views.console.input("").strip().lower()
                if not companion.sessions.is_active:
                    break
                if command == "p":
                    companion.pause_session()
                elif command == "r":
                    companion.resume_session()
                elif command == "s":
                    companion.skip_exercise()
                elif command == "q":
                    companion.stop_session()
                elif command:
                    views.console.print(RUN_HELP)
        except (KeyboardInterrupt, EOFError):
            companion.stop_session()
        finally:
            companion.close()

    history = companion.get_history()
    if history:
        record = history[0]
        status = "stopped" if record.stopped else "completed"
        views.print_success(
            f"Session {status}: {record.completed_count}/{session.template.total_sets} sets "
            f"in {format_time(record.elapsed_seconds)}"
        )


@app.command("history")
def history(
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Limit number of sessions to show"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Display finished sessions, newest first.
    """
    records = get_companion(data_dir, log_sessions=False).get_history()
    if limit is not None:
        records = records[:limit]

    if json_out:
        print(json.dumps([history_record_to_dict(r) for r in records], indent=2))
        return

    views.print_history(records)


@app.command("stats")
def stats(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show session totals and the number of sessions in the last 7 days.
    """
    result = get_companion(data_dir, log_sessions=False).get_history_stats()

    if json_out:
        print(json.dumps(dataclasses.asdict(result), indent=2))
        return

    views.print_history_stats(result)
