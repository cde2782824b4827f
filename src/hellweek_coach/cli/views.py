"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sessions, history and progress.
"""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..core.models import (
    Achievement,
    ActiveSession,
    HistoryRecord,
    HistoryStats,
    PeriodReport,
    PersonalRecord,
    ProgressEntry,
    ProgressSummary,
    StreakData,
    TrendReport,
    WeeklyRollup,
    WorkoutTemplate,
)
from ..core.session import format_time

console = Console()

TREND_STYLES = {"improving": "green", "stable": "yellow", "declining": "red"}


def _fmt_number(value: float, digits: int = 1) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:.{digits}f}"


def _fmt_datetime(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


# =============================================================================
# Catalog and sessions
# =============================================================================


def print_templates(templates: list[WorkoutTemplate]) -> None:
    """
    Print the workout catalog.

    Args:
        templates: Templates to list
    """
    table = Table(title="Workouts", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Min", justify="right")
    table.add_column("Exercises")

    for t in templates:
        exercises = ", ".join(f"{ex.name} ×{ex.sets}" for ex in t.exercises)
        table.add_row(t.template_id, t.name, str(t.duration_minutes), exercises)

    console.print(table)


def format_session_line(session: ActiveSession) -> str:
    """One status line for a live session snapshot."""
    if session.phase in ("completed", "stopped"):
        return (
            f"[bold green]Session {session.phase}[/bold green] — "
            f"{format_time(session.elapsed_seconds)} elapsed, "
            f"{session.done_count} sets done"
        )

    exercise = session.current_exercise
    name = exercise.name if exercise else "-"
    sets = exercise.sets if exercise else 0
    paused = " [yellow](paused)[/yellow]" if session.paused else ""

    if session.resting:
        return (
            f"[blue]Rest[/blue] {format_time(session.countdown)} — "
            f"next: {name} set {session.current_set}/{sets}{paused}"
        )
    return (
        f"[bold magenta]{name}[/bold magenta] set {session.current_set}/{sets} — "
        f"{format_time(session.countdown)} left{paused}"
    )


def print_history(records: list[HistoryRecord]) -> None:
    """
    Print session history as a table, newest first.

    Args:
        records: History records to display
    """
    if not records:
        print_info("No sessions recorded yet.")
        return

    table = Table(title="Session History", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Started", style="cyan")
    table.add_column("Workout", style="bold")
    table.add_column("Time", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Status")

    for i, r in enumerate(records, 1):
        skipped = sum(1 for c in r.completed_exercises if c.skipped)
        status = "[yellow]stopped[/yellow]" if r.stopped else "[green]done[/green]"
        table.add_row(
            str(i),
            _fmt_datetime(r.start_time),
            r.name,
            format_time(r.elapsed_seconds),
            str(r.completed_count),
            str(skipped) if skipped else "-",
            status,
        )

    console.print(table)


def print_history_stats(stats: HistoryStats) -> None:
    console.print()
    console.print(f"Sessions:        [bold]{stats.total_sessions}[/bold]")
    console.print(f"This week:       {stats.sessions_this_week}")
    console.print(f"Total time:      {format_time(stats.total_seconds)}")
    console.print(f"Average session: {format_time(stats.average_seconds)}")
    console.print(f"Sets completed:  {stats.total_exercises}")
    console.print()


# =============================================================================
# Ledger
# =============================================================================


def _entry_measures(entry: ProgressEntry) -> str:
    parts = []
    if entry.distance is not None:
        parts.append(f"{_fmt_number(entry.distance)} mi")
    if entry.duration is not None:
        parts.append(f"{_fmt_number(entry.duration)} min")
    if entry.reps is not None:
        parts.append(f"{entry.reps} reps")
    if entry.calories is not None:
        parts.append(f"{_fmt_number(entry.calories)} kcal")
    if entry.sleep is not None:
        parts.append(f"{_fmt_number(entry.sleep)} h sleep")
    if entry.mood is not None:
        parts.append(f"mood {entry.mood}")
    return ", ".join(parts)


def print_entries(entries: list[ProgressEntry]) -> None:
    """
    Print ledger entries.

    Args:
        entries: Entries to display
    """
    if not entries:
        print_info("No entries found.")
        return

    table = Table(title="Progress Log", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Wk", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Activity", style="bold")
    table.add_column("Measures")
    table.add_column("Done")

    for e in entries:
        table.add_row(
            e.entry_id[:8],
            e.date,
            str(e.week),
            e.entry_type,
            e.activity,
            _entry_measures(e),
            "✓" if e.completed else "✗",
        )

    console.print(table)


# =============================================================================
# Analytics
# =============================================================================


def print_rollup(rollup: WeeklyRollup) -> None:
    """Print a weekly roll-up against its goals."""
    g = rollup.goals
    span = f"{rollup.start_date} → {rollup.end_date}" if rollup.start_date else "no entries"

    console.print()
    console.print(f"[bold]Week {rollup.week}[/bold] ({span})")
    console.print(
        f"  Workouts:    {rollup.completed_workouts}/{rollup.total_workouts} "
        f"([bold]{rollup.completion_rate:.0f}%[/bold])  target: {g.strength_sessions} strength sessions"
    )
    console.print(f"  Distance:    {_fmt_number(rollup.total_distance)} mi / {_fmt_number(g.miles)} mi")
    console.print(f"  Time:        {_fmt_number(rollup.total_time)} min")
    console.print(f"  Calories:    {_fmt_number(rollup.total_calories)} (daily goal {g.calories})")
    console.print(f"  Avg HR:      {_fmt_number(rollup.average_heart_rate)}")
    console.print(f"  Avg sleep:   {_fmt_number(rollup.average_sleep)} h (goal {g.sleep} h)")
    console.print(f"  Avg mood:    {_fmt_number(rollup.average_mood)}   Avg energy: {_fmt_number(rollup.average_energy)}")
    for a in rollup.achievements:
        console.print(f"  [green]★ {a.title}[/green] ({a.unlocked_on})")
    console.print()


def print_streaks(streaks: StreakData) -> None:
    table = Table(title="Streaks", show_header=True, header_style="bold")
    table.add_column("Area")
    table.add_column("Current", justify="right", style="bold")
    table.add_column("Longest", justify="right")
    table.add_row("Workout", str(streaks.current_workout), str(streaks.longest_workout))
    table.add_row("Nutrition", str(streaks.current_nutrition), str(streaks.longest_nutrition))
    table.add_row("Mental", str(streaks.current_mental), str(streaks.longest_mental))
    console.print(table)


def print_trends(trends: TrendReport) -> None:
    table = Table(title="Trends (last 7 days vs the 7 before)", show_header=True, header_style="bold")
    table.add_column("Area")
    table.add_column("Trend")
    for area in ("fitness", "nutrition", "mental", "recovery", "overall"):
        value = getattr(trends, area)
        table.add_row(area.capitalize(), f"[{TREND_STYLES[value]}]{value}[/{TREND_STYLES[value]}]")
    console.print(table)


def print_achievements(achievements: list[Achievement]) -> None:
    table = Table(title="Achievements", show_header=True, header_style="bold")
    table.add_column("Achievement", style="bold")
    table.add_column("Description")
    table.add_column("Points", justify="right")
    table.add_column("Unlocked", style="green")
    for a in achievements:
        table.add_row(a.title, a.description, str(a.points), a.unlocked_on or "[dim]locked[/dim]")
    console.print(table)


def print_records(records: list[PersonalRecord]) -> None:
    if not records:
        print_info("No personal records yet.")
        return

    table = Table(title="Personal Records", show_header=True, header_style="bold")
    table.add_column("Discipline", style="cyan")
    table.add_column("Activity")
    table.add_column("Best", justify="right", style="bold")
    table.add_column("Previous", justify="right")
    table.add_column("Date")
    for r in records:
        previous = f"{_fmt_number(r.previous_value)} {r.unit}" if r.previous_value is not None else "-"
        table.add_row(r.discipline, r.activity, f"{_fmt_number(r.value)} {r.unit}", previous, r.date)
    console.print(table)


def print_summary(summary: ProgressSummary, recommendations: list[str]) -> None:
    console.print()
    console.print(f"[bold]Program week {summary.current_week}[/bold] (data through week {summary.total_weeks})")
    console.print(
        f"  Workouts: {summary.completed_workouts}/{summary.total_workouts} completed, "
        f"average weekly completion {summary.average_completion_rate:.0f}%"
    )
    console.print(
        f"  Distance: {_fmt_number(summary.total_distance)} mi   "
        f"Time: {_fmt_number(summary.total_time)} min   "
        f"Calories: {_fmt_number(summary.total_calories)}"
    )
    console.print(
        f"  Workout streak: {summary.streaks.current_workout} "
        f"(longest {summary.streaks.longest_workout})"
    )
    console.print()
    console.print("[bold]Recommendations[/bold]")
    for message in recommendations:
        console.print(f"  • {message}")
    console.print()


def print_period_report(report: PeriodReport) -> None:
    w, n, r = report.workouts, report.nutrition, report.recovery
    console.print()
    console.print(f"[bold]Last {report.days} days[/bold] ({report.start_date} → {report.end_date})")
    console.print(
        f"  Workouts:  {w.completed_workouts}/{w.total_workouts} ({w.completion_rate:.0f}%), "
        f"avg {_fmt_number(w.average_duration)} min, {_fmt_number(w.total_calories)} kcal burned"
    )
    for activity, count in sorted(w.activity_counts.items(), key=lambda kv: -kv[1]):
        console.print(f"    {activity}: {count}")
    console.print(
        f"  Nutrition: {n.total_meals} meals, {_fmt_number(n.total_calories)} kcal, "
        f"{_fmt_number(n.total_protein)} g protein"
    )
    console.print(
        f"  Recovery:  {r.total_logs} logs, sleep {_fmt_number(r.average_sleep)} h, "
        f"energy {_fmt_number(r.average_energy)}, stress {_fmt_number(r.average_stress)}"
    )
    console.print()


# =============================================================================
# Messages
# =============================================================================


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
