"""
YAML → dict config loader.

Loads the program definition from program.yaml (bundled with the package)
and optionally merges user overrides from ~/.hellweek-coach/program.yaml.

Usage:
    from hellweek_coach.core.engine.config_loader import load_program_config
    cfg = load_program_config()
    weeks = cfg.get("weeks", [])

A missing or unparsable file contributes nothing; a warning is logged for
parse errors so a broken user override does not go unnoticed.
"""

from __future__ import annotations

import importlib.resources
import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

DATA_DIR_ENV = "HELLWEEK_COACH_HOME"

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; return {} if the file is missing or invalid."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable YAML file {}: {}", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_user_data_dir() -> Path:
    """Return the data directory: $HELLWEEK_COACH_HOME or ~/.hellweek-coach."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".hellweek-coach"


def get_bundled_program_path() -> Path | None:
    """Return the path to the bundled program.yaml, or None if not found."""
    ref = importlib.resources.files("hellweek_coach").joinpath("program.yaml")
    if ref.is_file():
        return Path(str(ref))
    # Fallback: look relative to this file's package root
    candidate = Path(__file__).parent.parent.parent / "program.yaml"
    return candidate if candidate.exists() else None


def get_user_program_path() -> Path | None:
    """Return the user's program.yaml override if it exists, else None."""
    p = get_user_data_dir() / "program.yaml"
    return p if p.exists() else None


def load_program_config() -> dict[str, Any]:
    """
    Load and merge the program configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/hellweek_coach/program.yaml
    2. User override at ~/.hellweek-coach/program.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_program_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = get_user_program_path()
    if user is not None:
        user_cfg = load_yaml_file(user)
        if user_cfg:
            config = deep_merge(config, user_cfg)

    return config
