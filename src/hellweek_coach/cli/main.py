"""
CLI entry point using Typer.

Provides commands for the Hell Week preparation companion:
- templates / run: list and run guided workouts
- history / stats: finished sessions
- log / entries / update-entry / delete-entry: the progress log
- rollup / streaks / trends / achievements / records / summary / report: analytics
"""

from typing import Annotated

import typer

from .app import app, configure_logging

# Import command modules so their @app.command() decorators register.
from .commands import analysis, progress, sessions  # noqa: F401


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging on stderr"),
    ] = False,
) -> None:
    """
    Training companion for a 12-week Hell Week preparation program.
    """
    configure_logging(verbose)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
