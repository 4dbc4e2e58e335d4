"""Durable single-document store for the application state.

The whole AppState is one JSON file, rewritten atomically after every
mutation. Reading fails open: a missing or unusable document yields the
seeded default state so the app stays usable. A corrupt document is
discarded, not repaired.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from habitcore.fileio import read_json, write_json_atomic
from habitcore.models import AppState

logger = logging.getLogger(__name__)


class StateStore:
    """Load/save the AppState document at a fixed path.

    *today* supplies the current day key, used only to seed a fresh state.
    """

    def __init__(self, path: Path, today: Callable[[], str]) -> None:
        self.path = path
        self._today = today
        self.last_error: Exception | None = None

    def load(self) -> AppState:
        try:
            data = read_json(self.path)
        except FileNotFoundError:
            logger.info("No state at %s, starting with default habits", self.path)
            return AppState.seeded(self._today())
        except (OSError, ValueError, RecursionError) as e:
            logger.warning("Unreadable state at %s (%s), starting over", self.path, e)
            return AppState.seeded(self._today())

        try:
            return AppState.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid state at %s (%s), starting over", self.path, e)
            return AppState.seeded(self._today())

    def save(self, state: AppState) -> bool:
        """Overwrite the document. Never raises; returns False on failure."""
        try:
            write_json_atomic(self.path, state.to_dict())
        except (OSError, ValueError) as e:
            self.last_error = e
            logger.error("Failed to save state to %s: %s", self.path, e)
            return False
        self.last_error = None
        return True
