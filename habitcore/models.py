"""Typed dataclasses for the HabitStreak data model.

Models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults. Values of the wrong
shape raise ValueError/TypeError so the store can fall back to a seed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


DEFAULT_HABIT_TITLES = (
    "Take pills",
    "Drink creatine",
    "Run 3 miles",
    "Read 10 pages",
)


def _non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


# ── Habit ─────────────────────────────────────────────────────


@dataclass
class Habit:
    """A habit is identified by its id; the title is free to change."""

    id: str
    title: str

    @classmethod
    def new(cls, title: str) -> Habit:
        return cls(id=str(uuid.uuid4()), title=title)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        if not isinstance(d, dict):
            raise TypeError(f"habit must be an object, got {type(d).__name__}")
        habit_id = d.get("id")
        if not isinstance(habit_id, str) or not habit_id:
            raise ValueError(f"habit id missing or invalid: {habit_id!r}")
        return cls(id=habit_id, title=str(d.get("title", "")))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title}


# ── Application state ─────────────────────────────────────────


@dataclass
class AppState:
    habits: list[Habit] = field(default_factory=list)
    completions: dict[str, set[str]] = field(default_factory=dict)  # day key -> habit ids
    last_seen_day_key: str = ""
    current_streak: int = 0
    best_streak: int = 0

    @classmethod
    def seeded(cls, today_key: str) -> AppState:
        """Fresh-install state with the example habits."""
        return cls(
            habits=[Habit.new(title) for title in DEFAULT_HABIT_TITLES],
            last_seen_day_key=today_key,
        )

    def habit_ids(self) -> set[str]:
        return {h.id for h in self.habits}

    def completion_set(self, key: str) -> frozenset[str]:
        return frozenset(self.completions.get(key, ()))

    def is_fully_completed(self, key: str) -> bool:
        """True iff there are habits and every current one is done on *key*.

        An empty habit list never counts as completed.
        """
        if not self.habits:
            return False
        done = self.completions.get(key)
        if not done:
            return False
        return len(done & self.habit_ids()) == len(self.habits)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppState:
        if not isinstance(d, dict):
            raise TypeError(f"state must be an object, got {type(d).__name__}")

        raw_habits = d.get("habits") or []
        if not isinstance(raw_habits, list):
            raise TypeError("habits must be a list")
        habits = [Habit.from_dict(h) for h in raw_habits]

        raw_completions = d.get("completions") or {}
        if not isinstance(raw_completions, dict):
            raise TypeError("completions must be an object")
        completions: dict[str, set[str]] = {}
        for key, ids in raw_completions.items():
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise TypeError(f"completions[{key!r}] must be a list of ids")
            completions[str(key)] = set(ids)

        last_seen = d.get("lastSeenDayKey", "")
        if not isinstance(last_seen, str):
            raise TypeError("lastSeenDayKey must be a string")

        current = _non_negative_int(d.get("currentStreak", 0), "currentStreak")
        best = _non_negative_int(d.get("bestStreak", 0), "bestStreak")

        return cls(
            habits=habits,
            completions=completions,
            last_seen_day_key=last_seen,
            current_streak=current,
            # best can never trail current
            best_streak=max(best, current),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habits": [h.to_dict() for h in self.habits],
            "completions": {
                key: sorted(ids) for key, ids in sorted(self.completions.items())
            },
            "lastSeenDayKey": self.last_seen_day_key,
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
        }
