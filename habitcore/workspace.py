"""Workspace root, timezone, path helpers for HabitStreak."""

from __future__ import annotations

import logging
import os
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from habitcore.fileio import read_yaml

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace directory holding the state document and settings."""
    return Path(
        os.environ.get("HABITSTREAK_ROOT", str(Path.home() / ".habitstreak"))
    ).expanduser().resolve()


def get_user_timezone(root: Path | None = None) -> tzinfo:
    """Timezone from settings.yaml, defaulting to the host's local zone."""
    if root is None:
        root = workspace_root()
    try:
        settings = read_yaml(settings_path(root))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read settings: %s", e)
        settings = {}
    name = settings.get("timezone")
    if name:
        try:
            return ZoneInfo(str(name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r in settings, using local time", name)
    return datetime.now().astimezone().tzinfo


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in the user's timezone."""
    return datetime.now(get_user_timezone(root))


# ── Path helpers ──────────────────────────────────────────────

def state_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "habits_state.json"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"
