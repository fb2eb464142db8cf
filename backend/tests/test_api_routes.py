from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from dayflow.api import deps
from dayflow.api.deps import get_planner
from dayflow.core.clock import FixedClock
from dayflow.core.config import settings
from dayflow.main import app
from dayflow.services import state_codec as codec
from dayflow.services.dashboard_service import completion_percent
from dayflow.services.notifications.noop import NoopNotificationService
from dayflow.services.planner_state import PlannerState
from dayflow.services.state_store import InMemoryStateStore


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(settings, "notifications_enabled", True)
    clock = FixedClock(datetime(2025, 3, 3, 6, 0))
    planner = PlannerState(InMemoryStateStore(), NoopNotificationService(), clock)

    def override_get_planner():
        yield planner

    app.dependency_overrides[get_planner] = override_get_planner
    with TestClient(app) as test_client:
        yield test_client, planner
    app.dependency_overrides.clear()


def _monday_task(planner: PlannerState, title: str):
    return next(task for task in planner.tasks_for(1) if task.title == title)


def test_get_week_returns_seven_days(client) -> None:
    test_client, _ = client
    response = test_client.get("/week", headers={"X-Request-Id": "week-req"})

    assert response.status_code == 200
    body = response.json()
    assert body["week_start"] == "2025-03-02"
    assert [day["day_index"] for day in body["days"]] == list(range(7))
    assert body["days"][1]["day"] == "2025-03-03"
    assert body["request_id"] == "week-req"
    assert response.headers["X-Request-Id"] == "week-req"


def test_get_day_and_bad_index(client) -> None:
    test_client, planner = client

    response = test_client.get("/days/1")
    assert response.status_code == 200
    assert [task["title"] for task in response.json()["tasks"]] == [task.title for task in planner.tasks_for(1)]

    assert test_client.get("/days/7").status_code == 404


def test_regenerate_day_validates_energy(client) -> None:
    test_client, planner = client

    assert test_client.post("/days/2/regenerate", json={"energy_level": 5}).status_code == 422

    response = test_client.post("/days/2/regenerate", json={"energy_level": 1})
    assert response.status_code == 200
    assert [task["id"] for task in response.json()["tasks"]] == [str(task.id) for task in planner.tasks_for(2)]


def test_add_manual_task(client) -> None:
    test_client, planner = client
    payload = {"title": "", "start": "2025-03-03T12:00:00", "end": "2025-03-03T12:30:00", "type": "Chores"}

    response = test_client.post("/days/1/tasks", json=payload)

    assert response.status_code == 201
    task = response.json()["task"]
    assert task["title"] == "Custom task"
    assert task["type"] == "Chores"
    assert task["id"] in [str(item.id) for item in planner.tasks_for(1)]


def test_add_manual_task_rejects_inverted_times(client) -> None:
    test_client, _ = client
    payload = {"title": "Oops", "start": "2025-03-03T12:00:00", "end": "2025-03-03T11:00:00"}

    assert test_client.post("/days/1/tasks", json=payload).status_code == 422


def test_add_manual_task_accepts_utc_offsets(client) -> None:
    test_client, planner = client
    payload = {"title": "Call", "start": "2025-03-03T12:00:00Z", "end": "2025-03-03T12:30:00Z"}

    response = test_client.post("/days/1/tasks", json=payload)

    assert response.status_code == 201
    stored = next(task for task in planner.tasks_for(1) if task.title == "Call")
    assert stored.start.tzinfo is None
    assert stored.end - stored.start == timedelta(minutes=30)
    assert test_client.get("/days/1").status_code == 200


def test_add_manual_task_outside_week_rejected(client) -> None:
    test_client, _ = client
    payload = {"title": "Later", "start": "2025-03-12T12:00:00", "end": "2025-03-12T13:00:00"}

    assert test_client.post("/days/1/tasks", json=payload).status_code == 422


def test_regenerate_day_accepts_offset_overrides(client) -> None:
    test_client, planner = client

    response = test_client.post("/days/1/regenerate", json={"wake_override": "2025-03-03T08:00:00+01:00"})

    assert response.status_code == 200
    assert all(task.start.tzinfo is None for task in planner.tasks_for(1))


def test_completion_toggle_is_idempotent(client) -> None:
    test_client, planner = client
    study = _monday_task(planner, "Study")

    first = test_client.patch(f"/days/1/tasks/{study.id}", json={"completed": True})
    second = test_client.patch(f"/days/1/tasks/{study.id}", json={"completed": True})

    assert first.json()["changed"] is True
    assert second.json()["changed"] is False
    assert second.json()["xp"] == 10
    assert test_client.patch(f"/days/1/tasks/{uuid4()}", json={"completed": True}).status_code == 404


def test_delete_task(client) -> None:
    test_client, planner = client
    task = planner.tasks_for(1)[0]

    assert test_client.delete(f"/days/1/tasks/{task.id}").status_code == 204
    assert test_client.delete(f"/days/1/tasks/{task.id}").status_code == 404


def test_end_day_summary(client) -> None:
    test_client, planner = client
    task = planner.tasks_for(1)[0]
    test_client.patch(f"/days/1/tasks/{task.id}", json={"completed": True})
    total = len(planner.tasks_for(1))

    response = test_client.post("/days/1/end")

    body = response.json()
    assert body["completed"] == 1
    assert body["total"] == total
    assert body["streak"] == 1
    assert body["percent"] == completion_percent(1, total)
    assert body["message"] == f"You completed 1 of {total} tasks ({completion_percent(1, total)}%)."


def test_progress_reports_goals_and_balance(client) -> None:
    test_client, planner = client
    planner.add_custom_preference("Guitar")

    assert test_client.put("/goals/builtin/Study", json={"hours": 50}).json()["goal_hours"] == 40.0
    assert test_client.put("/goals/custom/Guitar", json={"hours": 2}).status_code == 200
    assert test_client.put("/goals/custom/Chess", json={"hours": 2}).status_code == 404
    assert test_client.put("/goals/builtin/Knitting", json={"hours": 2}).status_code == 404

    body = test_client.get("/progress").json()
    assert body["level"] == 1
    assert [goal["name"] for goal in body["goals"]] == ["Study", "Guitar"]
    assert body["goals"][0]["fraction"] == 0.0
    assert body["fun_balance"]["mood"] == "heavy"


def test_week_generate_and_refresh(client) -> None:
    test_client, planner = client
    old_ids = {str(task.id) for task in planner.tasks_for(1)}

    generated = test_client.post("/week/generate").json()
    assert old_ids.isdisjoint(task["id"] for task in generated["days"][1]["tasks"])

    refreshed = test_client.post("/week/refresh").json()
    assert refreshed["generated"] is False
    assert refreshed["week_start"] == "2025-03-02"


def test_profile_onboarding_and_preferences(client) -> None:
    test_client, _ = client

    profile = test_client.get("/profile").json()
    assert profile["has_onboarded"] is False
    assert profile["selected_activities"] == ["Study", "Exercise"]

    onboarded = test_client.post("/profile/onboarding", json={"name": "Sam"}).json()
    assert onboarded["has_onboarded"] is True
    assert onboarded["user_name"] == "Sam"

    updated = test_client.put(
        "/profile/preferences",
        json={"selected_activities": ["Relaxation"], "custom_preferences": ["Guitar", "Guitar"], "auto_schedule": False},
    ).json()
    assert updated["selected_activities"] == ["Relaxation"]
    assert updated["custom_preferences"] == ["Guitar"]
    assert updated["auto_schedule"] is False

    schedule = test_client.put("/profile/schedule", json={"wake_time": "06:30", "sleep_time": "22:00"}).json()
    assert schedule["wake_time"] == "06:30:00"


def test_fixed_activities_replace(client) -> None:
    test_client, planner = client
    days = [{"enabled": idx == 2, "start": "10:00", "end": "12:00"} for idx in range(7)]

    response = test_client.put("/profile/fixed-activities", json={"fixed_activities": [{"name": "Lab", "days": days}]})

    assert response.status_code == 200
    assert [activity.name for activity in planner.fixed_activities] == ["Lab"]
    assert test_client.put(
        "/profile/fixed-activities", json={"fixed_activities": [{"name": "Short", "days": days[:3]}]}
    ).status_code == 422


def test_templates_crud(client) -> None:
    test_client, _ = client

    created = test_client.post("/templates", json={"title": "Read", "duration_min": 25, "type": "Skill-building"})
    assert created.status_code == 201
    assert created.json()["templates"][0]["duration_min"] == 25

    assert test_client.post("/templates", json={"title": "  ", "duration_min": 10}).status_code == 422
    assert test_client.post("/templates", json={"title": "Nap", "duration_min": 0}).status_code == 422

    assert test_client.delete("/templates/0").json()["templates"] == []
    assert test_client.delete("/templates/0").status_code == 404


def test_requests_catch_a_stale_planner_up(monkeypatch) -> None:
    clock = FixedClock(datetime(2025, 3, 8, 22, 0))
    planner = PlannerState(InMemoryStateStore(), NoopNotificationService(), clock)
    monkeypatch.setattr(deps, "build_planner", lambda: planner)
    clock.advance(hours=3)

    with TestClient(app) as test_client:
        body = test_client.get("/week").json()

    assert body["week_start"] == "2025-03-09"
    assert planner.store.get(codec.CURRENT_WEEK_START) == "2025-03-09"
    assert planner.store.get(codec.LAST_WEEK_START) == "2025-03-09"
