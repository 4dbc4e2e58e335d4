"""Shared test fixtures for HabitStreak tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from habitcore.engine import HabitEngine
from habitcore.fileio import write_json_atomic, write_yaml_atomic


class FakeClock:
    """Controllable 'now' for the engine."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now = self.now + timedelta(days=days, hours=hours)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary workspace with a UTC settings file."""
    root = tmp_path / "workspace"
    root.mkdir()
    write_yaml_atomic(root / "settings.yaml", {"timezone": "UTC"})
    monkeypatch.setenv("HABITSTREAK_ROOT", str(root))
    return root


@pytest.fixture
def clock() -> FakeClock:
    # Mid-morning so hour-level nudges never cross midnight by accident.
    return FakeClock(datetime(2026, 2, 10, 9, 30, tzinfo=ZoneInfo("UTC")))


@pytest.fixture
def two_habit_state(workspace: Path) -> dict:
    """Persisted state with habits A and B, last seen on 2026-02-10."""
    state = {
        "habits": [
            {"id": "habit-a", "title": "A"},
            {"id": "habit-b", "title": "B"},
        ],
        "completions": {"2026-02-10": []},
        "lastSeenDayKey": "2026-02-10",
        "currentStreak": 0,
        "bestStreak": 0,
    }
    write_json_atomic(workspace / "habits_state.json", state)
    return state


@pytest.fixture
def engine(workspace: Path, clock: FakeClock, two_habit_state: dict) -> HabitEngine:
    """Engine over the two-habit state, driven by the fake clock."""
    return HabitEngine(workspace, clock=clock)
