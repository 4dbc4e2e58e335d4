"""Completion statistics over a time window.

Pure read-only projections over the engine's read interface (habits,
completion_set, day_keys, is_fully_completed). Only habits that exist now
are counted; completions of deleted habits were scrubbed at deletion.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol, Sequence

from habitcore.daykey import day_key, last_n_day_keys
from habitcore.models import Habit


class CompletionReader(Protocol):
    @property
    def habits(self) -> Sequence[Habit]: ...

    def completion_set(self, key: str) -> frozenset[str]: ...

    def day_keys(self) -> list[str]: ...

    def is_fully_completed(self, key: str) -> bool: ...


class StatsRange(Enum):
    WEEK = "7D"
    MONTH = "30D"
    ALL = "All"

    @property
    def days(self) -> int | None:
        return {"7D": 7, "30D": 30}.get(self.value)


def _percentage(rate: float) -> int:
    return int(rate * 100 + 0.5)


@dataclass
class HabitStats:
    habit_id: str
    habit_title: str
    completed_count: int
    total_days: int

    @property
    def completion_rate(self) -> float:
        if self.total_days <= 0:
            return 0.0
        return self.completed_count / self.total_days

    @property
    def completion_percentage(self) -> int:
        return _percentage(self.completion_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitTitle": self.habit_title,
            "completedCount": self.completed_count,
            "totalDays": self.total_days,
            "completionPercentage": self.completion_percentage,
        }


@dataclass
class OverallStats:
    total_completions: int
    total_possible: int
    average_per_day: float

    @property
    def completion_rate(self) -> float:
        if self.total_possible <= 0:
            return 0.0
        return self.total_completions / self.total_possible

    @property
    def completion_percentage(self) -> int:
        return _percentage(self.completion_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCompletions": self.total_completions,
            "totalPossible": self.total_possible,
            "averagePerDay": round(self.average_per_day, 3),
            "completionPercentage": self.completion_percentage,
        }


def day_keys_in_range(reader: CompletionReader, rng: StatsRange, now: datetime) -> list[str]:
    """Day keys covered by *rng*, oldest first.

    7D/30D: the last N calendar days including today, whether or not they
    have a completion entry. All: every day that has an entry.
    """
    if rng.days is None:
        return sorted(reader.day_keys())
    return last_n_day_keys(rng.days, now)


def overall_stats(
    reader: CompletionReader, rng: StatsRange, now: datetime
) -> OverallStats | None:
    """Totals across all current habits, or None with no days or no habits."""
    keys = day_keys_in_range(reader, rng, now)
    habit_ids = {h.id for h in reader.habits}
    if not keys or not habit_ids:
        return None

    total = 0
    for key in keys:
        total += len(reader.completion_set(key) & habit_ids)
    return OverallStats(
        total_completions=total,
        total_possible=len(habit_ids) * len(keys),
        average_per_day=total / len(keys),
    )


def habit_stats(
    reader: CompletionReader, rng: StatsRange, now: datetime
) -> list[HabitStats]:
    """Per-habit completion counts, best completion rate first."""
    keys = day_keys_in_range(reader, rng, now)
    if not keys or not reader.habits:
        return []

    sets = [reader.completion_set(key) for key in keys]
    result = [
        HabitStats(
            habit_id=habit.id,
            habit_title=habit.title,
            completed_count=sum(1 for done in sets if habit.id in done),
            total_days=len(keys),
        )
        for habit in reader.habits
    ]
    # stable: ties keep list order
    result.sort(key=lambda s: s.completion_rate, reverse=True)
    return result


def completed_days_in_month(reader: CompletionReader, year: int, month: int) -> list[int]:
    """Day-of-month numbers that were fully completed, for a calendar view."""
    _, days_in_month = calendar.monthrange(year, month)
    return [
        day
        for day in range(1, days_in_month + 1)
        if reader.is_fully_completed(day_key(date(year, month, day)))
    ]
