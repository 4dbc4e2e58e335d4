"""Habit state engine: owns the AppState and every mutation of it.

Every mutating call updates the in-memory state and then writes the whole
document through the StateStore (write-through, one save per call).

Streaks only move in refresh_for_new_day_if_needed(), and only by looking
at the day before today. Marking or unmarking habits during the day never
changes current_streak or best_streak, so a day cannot be counted twice
and toggling back and forth is harmless.

The engine is single-writer: hosts driving it from several threads must
serialise calls themselves.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from habitcore.daykey import display_string, today_key, yesterday_key
from habitcore.hooks import HookDispatcher
from habitcore.models import AppState, Habit
from habitcore.store import StateStore
from habitcore.workspace import now_local, state_path, workspace_root

logger = logging.getLogger(__name__)

Listener = Callable[["HabitEngine"], None]


class HabitEngine:
    """In-memory habit state with write-through persistence.

    Hosts construct one engine at startup and call
    refresh_for_new_day_if_needed() on startup and whenever the app comes
    back to the foreground.
    """

    def __init__(
        self,
        root: Path | None = None,
        *,
        store: StateStore | None = None,
        clock: Callable[[], datetime] | None = None,
        hooks_enabled: bool = True,
    ) -> None:
        if root is None:
            root = workspace_root()
        self.root = root
        self._clock = clock or (lambda: now_local(root))
        self._store = store or StateStore(state_path(root), today=self.today_key)
        self._hooks = HookDispatcher(root) if hooks_enabled else None
        self._listeners: list[Listener] = []
        self.last_save_ok = True
        self._state = self._store.load()

    # ── Time ──────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._clock()

    def today_key(self) -> str:
        return today_key(self.now())

    def display_today(self) -> str:
        return display_string(self.now())

    # ── Read interface ────────────────────────────────────────

    @property
    def state(self) -> AppState:
        """The live state. Treat as read-only; mutate through the engine."""
        return self._state

    @property
    def habits(self) -> tuple[Habit, ...]:
        return tuple(self._state.habits)

    @property
    def current_streak(self) -> int:
        return self._state.current_streak

    @property
    def best_streak(self) -> int:
        return self._state.best_streak

    @property
    def last_seen_day_key(self) -> str:
        return self._state.last_seen_day_key

    def completion_set(self, key: str) -> frozenset[str]:
        return self._state.completion_set(key)

    def day_keys(self) -> list[str]:
        return sorted(self._state.completions)

    def is_fully_completed(self, key: str) -> bool:
        return self._state.is_fully_completed(key)

    def find_habit(self, habit_id: str) -> Habit | None:
        for habit in self._state.habits:
            if habit.id == habit_id:
                return habit
        return None

    # ── Today queries ─────────────────────────────────────────

    def is_completed_today(self, habit_id: str) -> bool:
        return habit_id in self._state.completions.get(self.today_key(), ())

    def completed_count_today(self) -> int:
        return len(self._state.completions.get(self.today_key(), ()))

    # ── Notification ──────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every persisted mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Completion mutations ──────────────────────────────────

    def mark_done(self, habit_id: str) -> bool:
        """Mark a habit done today. Returns True if today is now fully completed.

        Unknown ids are ignored. Completing the day is reported (and hooked)
        but does not touch the streak; that happens at the next rollover.
        """
        if self.find_habit(habit_id) is None:
            logger.debug("mark_done: unknown habit %s", habit_id)
            return False

        key = self.today_key()
        was_complete = self._state.is_fully_completed(key)
        self._state.completions.setdefault(key, set()).add(habit_id)
        now_complete = self._state.is_fully_completed(key)
        self._persist()

        if now_complete and not was_complete:
            self._hook("on_day_complete", {"day": key, "habits": len(self._state.habits)})
        return now_complete

    def mark_undone(self, habit_id: str) -> None:
        key = self.today_key()
        self._state.completions.setdefault(key, set()).discard(habit_id)
        self._persist()

    def toggle(self, habit_id: str) -> bool:
        """Flip today's status for a habit. Returns the new status."""
        if self.is_completed_today(habit_id):
            self.mark_undone(habit_id)
            return False
        self.mark_done(habit_id)
        return self.is_completed_today(habit_id)

    # ── Habit list mutations ──────────────────────────────────

    def add_habit(self, title: str) -> Habit | None:
        """Append a habit. Blank or unstorable titles are rejected (returns None, nothing saved)."""
        title = _clean_title(title)
        if title is None:
            return None
        habit = Habit.new(title)
        self._state.habits.append(habit)
        self._persist()
        self._hook("on_habit_added", habit.to_dict())
        return habit

    def rename_habit(self, habit_id: str, title: str) -> bool:
        title = _clean_title(title)
        habit = self.find_habit(habit_id)
        if habit is None or title is None:
            return False
        habit.title = title
        self._persist()
        return True

    def delete_habits(self, indices: Iterable[int]) -> list[Habit]:
        """Remove the habits at *indices* and scrub their ids from every day.

        Raises IndexError (before changing anything) if an index is out of range.
        """
        positions = self._check_indices(indices)
        removed = [self._state.habits[i] for i in sorted(positions)]
        self._state.habits = [
            h for i, h in enumerate(self._state.habits) if i not in positions
        ]
        removed_ids = {h.id for h in removed}
        for ids in self._state.completions.values():
            ids -= removed_ids
        self._persist()

        for habit in removed:
            self._hook("on_habit_deleted", habit.to_dict())
        return removed

    def delete_habit(self, habit_id: str) -> bool:
        for i, habit in enumerate(self._state.habits):
            if habit.id == habit_id:
                self.delete_habits([i])
                return True
        return False

    def move_habits(self, indices: Iterable[int], to: int) -> None:
        """Move the habits at *indices* so they land before position *to*.

        *to* is a position in the list as it was before the move (0 moves
        to the front, len(habits) to the end); moved items keep their
        relative order. Completion data is untouched.
        """
        positions = self._check_indices(indices)
        count = len(self._state.habits)
        if not 0 <= to <= count:
            raise IndexError(f"move destination {to} out of range 0..{count}")

        moving = [self._state.habits[i] for i in sorted(positions)]
        staying = [h for i, h in enumerate(self._state.habits) if i not in positions]
        insert_at = to - sum(1 for i in positions if i < to)
        self._state.habits = staying[:insert_at] + moving + staying[insert_at:]
        self._persist()

    # ── Day rollover ──────────────────────────────────────────

    def refresh_for_new_day_if_needed(self) -> bool:
        """Apply the day-transition rules. Returns True if a new day was entered.

        Same day: only make sure today's entry exists (idempotent).
        New day: yesterday (relative to now) decides the streak. If it was
        fully completed the streak grows, otherwise it resets to 0. Only that
        single day is looked at, however many days passed since the last check.
        """
        now = self.now()
        key = today_key(now)
        state = self._state

        if key == state.last_seen_day_key:
            if key not in state.completions:
                state.completions[key] = set()
                self._persist()
            return False

        yesterday = yesterday_key(now)
        yesterday_complete = state.is_fully_completed(yesterday)
        if yesterday_complete:
            state.current_streak += 1
            if state.current_streak > state.best_streak:
                state.best_streak = state.current_streak
        else:
            state.current_streak = 0

        previous = state.last_seen_day_key
        state.last_seen_day_key = key
        state.completions.setdefault(key, set())
        self._persist()

        logger.info(
            "Rolled over %s -> %s (yesterday complete: %s, streak %d, best %d)",
            previous or "(none)", key, yesterday_complete,
            state.current_streak, state.best_streak,
        )
        self._hook("post_rollover", {
            "day": key,
            "previous_day": previous,
            "yesterday": yesterday,
            "yesterday_completed": yesterday_complete,
            "current_streak": state.current_streak,
            "best_streak": state.best_streak,
        })
        return True

    # ── Internals ─────────────────────────────────────────────

    def _check_indices(self, indices: Iterable[int]) -> set[int]:
        positions = set(indices)
        count = len(self._state.habits)
        for i in positions:
            if not 0 <= i < count:
                raise IndexError(f"habit index {i} out of range 0..{count - 1}")
        return positions

    def _persist(self) -> None:
        self.last_save_ok = self._store.save(self._state)
        for listener in list(self._listeners):
            listener(self)

    def _hook(self, event: str, context: dict) -> None:
        if self._hooks is not None:
            self._hooks.fire(event, context)

    # ── Hooks ─────────────────────────────────────────────────

    def wait_for_hooks(self, timeout: float | None = None) -> bool:
        """Block until fired hooks have finished. True when nothing is left running."""
        if self._hooks is None:
            return True
        return self._hooks.wait(timeout)

    def close(self) -> None:
        """Let queued hooks finish and stop the hook worker."""
        if self._hooks is not None:
            self._hooks.shutdown()


def _clean_title(title: str) -> str | None:
    """Stripped title, or None if it is blank or cannot be written as UTF-8."""
    title = title.strip()
    if not title:
        return None
    try:
        title.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return title
