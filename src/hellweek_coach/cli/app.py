"""Shared Typer app object, shared option types, and companion factory."""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger

from ..companion import TrainingCompanion
from ..core.clock import Clock
from ..core.engine.config_loader import get_user_data_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-D", help="Data directory (default: $HELLWEEK_COACH_HOME or ~/.hellweek-coach)"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="hellweek-coach",
    help="Training companion for a 12-week Hell Week preparation program.",
    no_args_is_help=True,
)


def configure_logging(verbose: bool) -> None:
    """Route loguru to stderr only when --verbose is given."""
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")


def get_companion(
    data_dir: Path | None,
    clock: Clock | None = None,
    log_sessions: bool = True,
) -> TrainingCompanion:
    """Build a companion over the given or default data directory."""
    if data_dir is None:
        data_dir = get_user_data_dir()
    return TrainingCompanion.from_data_dir(data_dir, clock=clock, log_sessions=log_sessions)
