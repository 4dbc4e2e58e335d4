from __future__ import annotations

import threading
from datetime import date
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Query

from habitcore import (
    HabitEngine,
    StatsRange,
    completed_days_in_month,
    habit_stats,
    overall_stats,
)


app = FastAPI(title="HabitStreak", version="0.1.0")

# The engine is single-writer; every request touching it holds this lock.
_lock = threading.Lock()
_engine: HabitEngine | None = None


def get_engine() -> HabitEngine:
    global _engine
    with _lock:
        if _engine is None:
            _engine = HabitEngine()
            _engine.refresh_for_new_day_if_needed()
    return _engine


def _state_payload(engine: HabitEngine) -> dict[str, Any]:
    today = engine.today_key()
    done = engine.completion_set(today)
    return {
        "today": today,
        "display": engine.display_today(),
        "habits": [
            {"id": h.id, "title": h.title, "doneToday": h.id in done}
            for h in engine.habits
        ],
        "completedToday": engine.completed_count_today(),
        "total": len(engine.habits),
        "todayComplete": engine.is_fully_completed(today),
        "currentStreak": engine.current_streak,
        "bestStreak": engine.best_streak,
        "lastSeenDayKey": engine.last_seen_day_key,
        "saved": engine.last_save_ok,
    }


def _require_habit(engine: HabitEngine, habit_id: str) -> None:
    if engine.find_habit(habit_id) is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")


# ── Endpoints ─────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/state")
def api_get_state(engine: HabitEngine = Depends(get_engine)) -> dict[str, Any]:
    """Current habits, today's progress and streaks. Read-only; POST /api/refresh rolls over."""
    with _lock:
        return _state_payload(engine)


@app.post("/api/refresh")
def api_refresh(engine: HabitEngine = Depends(get_engine)) -> dict[str, Any]:
    """Process a day change. Clients call this when they come back to the foreground."""
    with _lock:
        rolled = engine.refresh_for_new_day_if_needed()
        return {"ok": True, "rolledOver": rolled, **_state_payload(engine)}


@app.post("/api/habits")
def api_add_habit(
    payload: dict[str, Any] = Body(...),
    engine: HabitEngine = Depends(get_engine),
) -> dict[str, Any]:
    title = str(payload.get("title", ""))
    with _lock:
        habit = engine.add_habit(title)
        if habit is None:
            raise HTTPException(status_code=400, detail="Title must be non-empty UTF-8 text")
        return {"ok": True, "habit": habit.to_dict(), "saved": engine.last_save_ok}


@app.put("/api/habits/{habit_id}")
def api_rename_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    engine: HabitEngine = Depends(get_engine),
) -> dict[str, Any]:
    with _lock:
        _require_habit(engine, habit_id)
        if not engine.rename_habit(habit_id, str(payload.get("title", ""))):
            raise HTTPException(status_code=400, detail="Title must be non-empty UTF-8 text")
        return {"ok": True, "habit": engine.find_habit(habit_id).to_dict(), "saved": engine.last_save_ok}


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(habit_id: str, engine: HabitEngine = Depends(get_engine)) -> dict[str, Any]:
    """Delete a habit and its completions on every day."""
    with _lock:
        if not engine.delete_habit(habit_id):
            raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
        return {"ok": True, "habit_id": habit_id, "saved": engine.last_save_ok}


@app.post("/api/habits/move")
def api_move_habits(
    payload: dict[str, Any] = Body(...),
    engine: HabitEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Reorder: {"from": [indices], "to": position}."""
    indices = payload.get("from")
    to = payload.get("to")
    if not isinstance(indices, list) or not all(isinstance(i, int) for i in indices) or not isinstance(to, int):
        raise HTTPException(status_code=400, detail="Expected {'from': [int], 'to': int}")
    with _lock:
        try:
            engine.move_habits(indices, to)
        except IndexError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True, "habits": [h.to_dict() for h in engine.habits], "saved": engine.last_save_ok}


@app.post("/api/habits/{habit_id}/done")
def api_mark_done(habit_id: str, engine: HabitEngine = Depends(get_engine)) -> dict[str, Any]:
    with _lock:
        _require_habit(engine, habit_id)
        complete = engine.mark_done(habit_id)
        return {"ok": True, "todayComplete": complete, "saved": engine.last_save_ok}


@app.delete("/api/habits/{habit_id}/done")
def api_mark_undone(habit_id: str, engine: HabitEngine = Depends(get_engine)) -> dict[str, Any]:
    with _lock:
        _require_habit(engine, habit_id)
        engine.mark_undone(habit_id)
        return {"ok": True, "todayComplete": False, "saved": engine.last_save_ok}


@app.get("/api/stats")
def api_stats(
    range_name: str = Query("7D", alias="range"),
    engine: HabitEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Completion rates for 7D, 30D or All."""
    try:
        rng = StatsRange(range_name)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown range: {range_name}")
    with _lock:
        now = engine.now()
        overall = overall_stats(engine, rng, now)
        return {
            "range": rng.value,
            "overall": overall.to_dict() if overall else None,
            "habits": [s.to_dict() for s in habit_stats(engine, rng, now)],
            "currentStreak": engine.current_streak,
            "bestStreak": engine.best_streak,
        }


@app.get("/api/calendar")
def api_calendar(
    year: int | None = Query(None, ge=1, le=9999),
    month: int | None = Query(None, ge=1, le=12),
    engine: HabitEngine = Depends(get_engine),
) -> dict[str, Any]:
    """Fully completed days of a month (defaults to the current month)."""
    with _lock:
        today: date = engine.now().date()
        year = year or today.year
        month = month or today.month
        return {
            "year": year,
            "month": month,
            "completedDays": completed_days_in_month(engine, year, month),
        }
