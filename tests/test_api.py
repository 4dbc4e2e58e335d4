"""Tests for ui/app.py: HTTP host over the engine."""

import pytest
from fastapi.testclient import TestClient

from ui.app import app, get_engine


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_get_state(client):
    data = client.get("/api/state").json()
    assert data["today"] == "2026-02-10"
    assert data["display"] == "Feb 10, 2026"
    assert [h["title"] for h in data["habits"]] == ["A", "B"]
    assert data["completedToday"] == 0
    assert data["total"] == 2
    assert data["todayComplete"] is False
    assert data["saved"] is True


def test_mark_done_and_undone(client):
    r = client.post("/api/habits/habit-a/done")
    assert r.json()["todayComplete"] is False
    r = client.post("/api/habits/habit-b/done")
    assert r.json()["todayComplete"] is True

    state = client.get("/api/state").json()
    assert all(h["doneToday"] for h in state["habits"])

    client.delete("/api/habits/habit-a/done")
    state = client.get("/api/state").json()
    assert state["completedToday"] == 1
    assert state["todayComplete"] is False


def test_unknown_habit_is_404(client):
    assert client.post("/api/habits/ghost/done").status_code == 404
    assert client.delete("/api/habits/ghost").status_code == 404
    assert client.put("/api/habits/ghost", json={"title": "X"}).status_code == 404


def test_add_rename_delete(client, engine):
    r = client.post("/api/habits", json={"title": "Stretch"})
    assert r.status_code == 200
    habit_id = r.json()["habit"]["id"]

    r = client.put(f"/api/habits/{habit_id}", json={"title": "Stretch 10 min"})
    assert r.json()["habit"] == {"id": habit_id, "title": "Stretch 10 min"}

    assert client.delete(f"/api/habits/{habit_id}").json()["ok"] is True
    assert [h.id for h in engine.habits] == ["habit-a", "habit-b"]


def test_blank_title_rejected(client):
    assert client.post("/api/habits", json={"title": "   "}).status_code == 400
    assert client.put("/api/habits/habit-a", json={"title": ""}).status_code == 400


def test_unencodable_title_rejected(client, engine):
    body = '{"title": "bad \\ud800 title"}'
    headers = {"Content-Type": "application/json"}
    assert client.post("/api/habits", content=body, headers=headers).status_code == 400
    assert client.put("/api/habits/habit-a", content=body, headers=headers).status_code == 400
    assert [h.title for h in engine.habits] == ["A", "B"]
    assert client.post("/api/habits/habit-a/done").json()["saved"] is True


def test_move(client):
    r = client.post("/api/habits/move", json={"from": [1], "to": 0})
    assert [h["id"] for h in r.json()["habits"]] == ["habit-b", "habit-a"]
    assert client.post("/api/habits/move", json={"from": [9], "to": 0}).status_code == 400
    assert client.post("/api/habits/move", json={"from": "1", "to": 0}).status_code == 400


def test_refresh_rolls_over(client, clock):
    client.post("/api/habits/habit-a/done")
    client.post("/api/habits/habit-b/done")
    clock.advance(days=1)
    data = client.post("/api/refresh").json()
    assert data["rolledOver"] is True
    assert data["today"] == "2026-02-11"
    assert data["currentStreak"] == 1
    assert data["bestStreak"] == 1
    assert client.post("/api/refresh").json()["rolledOver"] is False


def test_stats(client):
    client.post("/api/habits/habit-a/done")
    data = client.get("/api/stats", params={"range": "All"}).json()
    assert data["range"] == "All"
    assert data["overall"]["totalCompletions"] == 1
    assert data["overall"]["totalPossible"] == 2
    assert [s["habitId"] for s in data["habits"]] == ["habit-a", "habit-b"]
    assert client.get("/api/stats", params={"range": "1Y"}).status_code == 400


def test_calendar(client):
    client.post("/api/habits/habit-a/done")
    client.post("/api/habits/habit-b/done")
    data = client.get("/api/calendar").json()
    assert data == {"year": 2026, "month": 2, "completedDays": [10]}
    assert client.get("/api/calendar", params={"month": 13}).status_code == 422


def test_get_state_does_not_roll_over(client, clock, engine, workspace):
    clock.advance(days=1)
    before = (workspace / "habits_state.json").read_bytes()
    data = client.get("/api/state").json()
    assert data["today"] == "2026-02-11"
    assert data["lastSeenDayKey"] == "2026-02-10"
    assert (workspace / "habits_state.json").read_bytes() == before
    assert client.post("/api/refresh").json()["rolledOver"] is True
