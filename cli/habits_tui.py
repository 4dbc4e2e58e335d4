#!/usr/bin/env python3
"""HabitStreak TUI: daily habit checklist powered by Textual."""

from __future__ import annotations

import logging
import sys

from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Checkbox, DataTable, Footer, Header, Input, Label, Static

from habitcore import HabitEngine, StatsRange, habit_stats, overall_stats, workspace_root


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#habit-list {
    height: 1fr;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.habit-done {
    opacity: 50%;
    text-style: strike;
}

#new-habit {
    dock: bottom;
    margin: 0 1;
}

#empty-hint {
    color: $text-muted;
    padding: 1 2;
}

#stats-screen {
    padding: 1 2;
}

#stats-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#stats-table {
    height: 1fr;
}

#status-bar {
    dock: bottom;
    height: 1;
    background: $primary-background;
    color: $text-muted;
    padding: 0 2;
}
"""


# ── Screens ────────────────────────────────────────────────────


class StatsScreen(Vertical):
    """Completion rates for the last 7/30 days and all time."""

    def __init__(self, engine: HabitEngine, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine = engine

    def compose(self) -> ComposeResult:
        yield Label("Statistics", classes="section-title")
        yield Static(id="stats-info")
        yield DataTable(id="stats-table")

    def on_mount(self) -> None:
        now = self.engine.now()
        lines = [
            f"Current streak: {self.engine.current_streak} days",
            f"Best streak: {self.engine.best_streak} days",
        ]
        for rng in StatsRange:
            overall = overall_stats(self.engine, rng, now)
            if overall:
                lines.append(
                    f"{rng.value}: {overall.completion_percentage}% "
                    f"({overall.total_completions}/{overall.total_possible}, "
                    f"{overall.average_per_day:.1f}/day)"
                )
        self.query_one("#stats-info", Static).update("\n".join(lines))

        table: DataTable = self.query_one("#stats-table", DataTable)
        table.add_columns("Habit", "7D", "30D", "All")
        by_range = {
            rng: {s.habit_id: s for s in habit_stats(self.engine, rng, now)}
            for rng in StatsRange
        }
        for habit in self.engine.habits:
            cells = []
            for rng in StatsRange:
                s = by_range[rng].get(habit.id)
                cells.append(f"{s.completion_percentage}%" if s else "-")
            table.add_row(habit.title, *cells)


# ── Main app ───────────────────────────────────────────────────


class HabitStreakApp(App):
    """HabitStreak: tick off the habits for today."""

    TITLE = "HabitStreak"
    CSS = CSS

    BINDINGS = [
        Binding("a", "focus_input", "Add"),
        Binding("x", "delete_habit", "Delete"),
        Binding("K", "move_up", "Move up"),
        Binding("J", "move_down", "Move down"),
        Binding("s", "toggle_stats", "Stats"),
        Binding("escape", "blur_focus", "Back"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, engine: HabitEngine | None = None) -> None:
        super().__init__()
        self.engine = engine or HabitEngine()
        self._showing_stats = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(id="habit-list")
        yield Input(placeholder="New habit, e.g. Run 5 miles", id="new-habit")
        yield Static(id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        self.engine.subscribe(lambda _engine: self._update_header())
        self.engine.refresh_for_new_day_if_needed()
        await self._rebuild_list()

    async def on_app_focus(self, event: events.AppFocus) -> None:
        # Terminal regained focus: the day may have changed meanwhile.
        if self.engine.refresh_for_new_day_if_needed():
            await self._rebuild_list()

    # ── Rendering ──────────────────────────────────────────────

    async def _rebuild_list(self) -> None:
        habit_list = self.query_one("#habit-list", VerticalScroll)
        await habit_list.remove_children()
        rows = []
        for habit in self.engine.habits:
            done = self.engine.is_completed_today(habit.id)
            cb = Checkbox(habit.title, value=done, id=f"habit-{habit.id}")
            if done:
                cb.add_class("habit-done")
            rows.append(cb)
        if not rows:
            rows.append(Static("No habits yet. Press 'a' to add one.", id="empty-hint"))
        await habit_list.mount_all(rows)
        self._update_header()

    def _update_header(self) -> None:
        total = len(self.engine.habits)
        done = self.engine.completed_count_today()
        self.sub_title = (
            f"{self.engine.display_today()}  {done}/{total} done  "
            f"🔥 {self.engine.current_streak}  🏆 {self.engine.best_streak}"
        )
        status = self.query_one("#status-bar", Static)
        status.update("" if self.engine.last_save_ok else "⚠ Could not save changes")

    def _focused_index(self) -> int | None:
        focused = self.focused
        if not isinstance(focused, Checkbox) or not focused.id:
            return None
        habit_id = focused.id.removeprefix("habit-")
        for i, habit in enumerate(self.engine.habits):
            if habit.id == habit_id:
                return i
        return None

    def _focus_habit(self, index: int) -> None:
        habits = self.engine.habits
        if 0 <= index < len(habits):
            self.query_one(f"#habit-{habits[index].id}", Checkbox).focus()

    # ── Events ─────────────────────────────────────────────────

    @on(Checkbox.Changed)
    def _on_habit_toggle(self, event: Checkbox.Changed) -> None:
        habit_id = (event.checkbox.id or "").removeprefix("habit-")
        if event.value:
            if self.engine.mark_done(habit_id):
                self.notify("All habits done today!", title="Day complete")
            event.checkbox.add_class("habit-done")
        else:
            self.engine.mark_undone(habit_id)
            event.checkbox.remove_class("habit-done")

    @on(Input.Submitted, "#new-habit")
    async def _on_new_habit(self, event: Input.Submitted) -> None:
        if self.engine.add_habit(event.value) is not None:
            event.input.value = ""
            await self._rebuild_list()

    # ── Actions ────────────────────────────────────────────────

    def action_focus_input(self) -> None:
        self.query_one("#new-habit", Input).focus()

    def action_blur_focus(self) -> None:
        self.set_focus(None)

    async def action_delete_habit(self) -> None:
        index = self._focused_index()
        if index is None:
            return
        self.engine.delete_habits([index])
        await self._rebuild_list()

    async def action_move_up(self) -> None:
        index = self._focused_index()
        if index is None or index == 0:
            return
        self.engine.move_habits([index], index - 1)
        await self._rebuild_list()
        self.call_after_refresh(self._focus_habit, index - 1)

    async def action_move_down(self) -> None:
        index = self._focused_index()
        if index is None or index >= len(self.engine.habits) - 1:
            return
        self.engine.move_habits([index], index + 2)
        await self._rebuild_list()
        self.call_after_refresh(self._focus_habit, index + 1)

    def action_toggle_stats(self) -> None:
        habit_list = self.query_one("#habit-list", VerticalScroll)
        if self._showing_stats:
            for old in self.query(StatsScreen):
                old.remove()
            habit_list.display = True
        else:
            habit_list.display = False
            self.mount(StatsScreen(self.engine, id="stats-screen"), after=habit_list)
        self._showing_stats = not self._showing_stats


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Cannot create workspace {root}: {e}")
        print("Set HABITSTREAK_ROOT to a writable directory.")
        sys.exit(1)

    logging.basicConfig(
        filename=str(root / "habitstreak.log"),
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = HabitStreakApp()
    try:
        app.run()
    finally:
        app.engine.close()


if __name__ == "__main__":
    main()
