import uuid

import pytest
from httpx import AsyncClient

from workout_tracker.config import settings

API = settings.API_V1_STR


async def _schedule(client: AsyncClient, user, scheduled_date="2026-03-10", **extra) -> dict:
    resp = await client.post(
        f"{API}/sessions/",
        json={"user_id": str(user.id), "scheduled_date": scheduled_date, **extra},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_workout_flow_over_http(client: AsyncClient, user, exercise, clock):
    session = await _schedule(client, user)
    assert session["status"] == "PLANNED"
    session_id = session["id"]

    resp = await client.post(f"{API}/sessions/{session_id}/start")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "IN_PROGRESS"

    resp = await client.post(
        f"{API}/sessions/{session_id}/exercises",
        json={
            "exercise_id": str(exercise.id),
            "exercise_order": 1,
            "sets_completed": 3,
            "reps_completed": 10,
            "weight_used_kg": 50,
            "calories_burned": 60,
        },
    )
    assert resp.status_code == 201, resp.text
    log = resp.json()["data"]
    assert log["weight_used_kg"] == 50.0

    clock.advance(minutes=50, seconds=20)
    resp = await client.post(
        f"{API}/sessions/{session_id}/complete",
        json={"calories_burned": 200, "overall_rating": 4},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()["data"]
    assert body["session"]["status"] == "COMPLETED"
    assert body["session"]["actual_duration_minutes"] == 50
    assert body["summary"]["total_exercises"] == 1
    assert body["summary"]["total_sets"] == 3
    assert body["summary"]["estimated_calories"] == 60
    assert body["summary"]["elapsed_minutes"] == 50

    resp = await client.get(
        f"{API}/metrics/user/{user.id}/volume/exercise/{exercise.id}",
        params={"start_date": "2026-03-10", "end_date": "2026-03-10"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["total_volume"] == 1500

    resp = await client.get(f"{API}/metrics/user/{user.id}/statistics")
    assert resp.json()["data"]["completed_sessions"] == 1
    assert resp.json()["data"]["total_calories_burned"] == 200


@pytest.mark.asyncio
async def test_domain_errors_map_to_status_codes(client: AsyncClient, user, exercise):
    session = await _schedule(client, user)
    session_id = session["id"]

    resp = await client.post(
        f"{API}/sessions/{session_id}/exercises",
        json={"exercise_id": str(exercise.id), "exercise_order": 1, "sets_completed": 3},
    )
    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "ILLEGAL_STATE"
    assert body["current_state"] == "PLANNED"

    resp = await client.post(f"{API}/sessions/{uuid.uuid4()}/start")
    assert resp.status_code == 404
    assert resp.json()["error"] == "NOT_FOUND"

    resp = await client.post(f"{API}/sessions/", json={"user_id": str(user.id), "scheduled_date": "2026-03-01"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "scheduled_date"

    resp = await client.post(f"{API}/sessions/", json={"user_id": str(user.id)})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient, user):
    resp = await client.get(f"{API}/sessions/{uuid.uuid4()}", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 404
    assert resp.headers["X-Request-ID"] == "req-123"
    assert resp.json()["request_id"] == "req-123"


@pytest.mark.asyncio
async def test_cancel_completed_session_over_http(client: AsyncClient, user):
    session_id = (await _schedule(client, user))["id"]
    await client.post(f"{API}/sessions/{session_id}/start")
    await client.post(f"{API}/sessions/{session_id}/complete", json={})

    resp = await client.post(f"{API}/sessions/{session_id}/cancel")
    assert resp.status_code == 409

    resp = await client.get(f"{API}/sessions/{session_id}")
    assert resp.json()["data"]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_batch_partial_success_over_http(client: AsyncClient, user, exercise):
    session_id = (await _schedule(client, user))["id"]
    await client.post(f"{API}/sessions/{session_id}/start")

    entries = [
        {"exercise_id": str(exercise.id), "exercise_order": 1, "sets_completed": 3},
        {"exercise_id": str(exercise.id), "exercise_order": 2, "sets_completed": 3, "difficulty_rating": 9},
    ]
    resp = await client.post(f"{API}/sessions/{session_id}/exercises/batch", json={"entries": entries})
    assert resp.status_code == 400
    assert resp.json()["field"] == "difficulty_rating"

    resp = await client.get(f"{API}/sessions/{session_id}/exercises")
    assert [log["exercise_order"] for log in resp.json()["data"]] == [1]


@pytest.mark.asyncio
async def test_session_edits_over_http(client: AsyncClient, user):
    session_id = (await _schedule(client, user, scheduled_date="2026-03-12"))["id"]

    resp = await client.patch(f"{API}/sessions/{session_id}", json={"notes": "Deload week"})
    assert resp.status_code == 200
    assert resp.json()["data"]["notes"] == "Deload week"

    resp = await client.put(
        f"{API}/sessions/{session_id}/reschedule",
        json={"scheduled_date": "2026-03-14", "scheduled_time": "07:30:00"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["scheduled_date"] == "2026-03-14"

    resp = await client.get(f"{API}/sessions/user/{user.id}", params={"status": "PLANNED"})
    assert [s["id"] for s in resp.json()["data"]] == [session_id]

    resp = await client.get(f"{API}/sessions/user/{user.id}", params={"status": "planned"})
    assert resp.status_code == 400

    resp = await client.delete(f"{API}/sessions/{session_id}")
    assert resp.status_code == 200
    resp = await client.get(f"{API}/sessions/{session_id}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_exercise_log_endpoints(client: AsyncClient, user, exercise):
    session_id = (await _schedule(client, user))["id"]
    await client.post(f"{API}/sessions/{session_id}/start")
    resp = await client.post(
        f"{API}/sessions/{session_id}/exercises",
        json={"exercise_id": str(exercise.id), "exercise_order": 1, "sets_completed": 3, "reps_completed": 8},
    )
    log_id = resp.json()["data"]["id"]

    resp = await client.put(f"{API}/exercise-logs/{log_id}", json={"reps_completed": 10})
    assert resp.status_code == 200
    assert resp.json()["data"]["reps_completed"] == 10

    resp = await client.get(f"{API}/exercise-logs/{log_id}")
    assert resp.json()["data"]["reps_completed"] == 10

    resp = await client.delete(f"{API}/exercise-logs/{log_id}")
    assert resp.status_code == 200
    resp = await client.get(f"{API}/exercise-logs/{log_id}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_goal_endpoints(client: AsyncClient, user):
    resp = await client.post(
        f"{API}/goals/user/{user.id}",
        json={"goal_type": "LOSE_WEIGHT", "target_weight_loss": 5, "current_weight": 80, "timeframe_months": 2},
    )
    assert resp.status_code == 201, resp.text
    goal = resp.json()["data"]
    assert goal["target_weight"] == 75.0
    assert goal["weekly_weight_change"] == -0.58
    assert goal["daily_calorie_deficit"] == 635
    goal_id = goal["id"]

    resp = await client.post(f"{API}/goals/user/{user.id}", json={"goal_type": "shred"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "goal_type"

    resp = await client.get(f"{API}/goals/user/{user.id}/active")
    assert [g["id"] for g in resp.json()["data"]] == [goal_id]

    resp = await client.post(f"{API}/goals/{goal_id}/complete")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "COMPLETED"
    assert resp.json()["data"]["completed_at"] is not None

    resp = await client.put(f"{API}/goals/{goal_id}/status", json={"status": "ACTIVE"})
    assert resp.status_code == 409

    resp = await client.delete(f"{API}/goals/{goal_id}")
    assert resp.status_code == 200
    resp = await client.get(f"{API}/goals/{goal_id}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_user_history_endpoints(client: AsyncClient, user, exercise, clock):
    session_id = (await _schedule(client, user, scheduled_time="18:00:00"))["id"]
    await client.post(f"{API}/sessions/{session_id}/start")
    await client.post(
        f"{API}/sessions/{session_id}/exercises",
        json={"exercise_id": str(exercise.id), "exercise_order": 1, "sets_completed": 4, "weight_used_kg": 12500},
    )
    clock.advance(minutes=40)
    await client.post(f"{API}/sessions/{session_id}/complete", json={})

    resp = await client.get(f"{API}/sessions/user/{user.id}/recent-completed")
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["data"]] == [session_id]
    assert resp.json()["data"][0]["actual_duration_minutes"] == 40

    resp = await client.get(f"{API}/sessions/user/{user.id}/exercise-logs")
    assert resp.status_code == 200
    assert [log["weight_used_kg"] for log in resp.json()["data"]] == [12500.0]

    resp = await client.get(
        f"{API}/sessions/user/{user.id}/exercise-logs/period",
        params={"start_date": "2026-03-11", "end_date": "2026-03-20"},
    )
    assert resp.json()["data"] == []

    resp = await client.get(
        f"{API}/sessions/user/{user.id}/exercise-logs/period",
        params={"start_date": "2026-03-20", "end_date": "2026-03-11"},
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "start_date"


@pytest.mark.asyncio
async def test_availability_endpoint(client: AsyncClient, user):
    await _schedule(client, user, scheduled_date="2026-03-12", scheduled_time="18:00:00")

    resp = await client.get(
        f"{API}/sessions/user/{user.id}/availability",
        params={"scheduled_date": "2026-03-12", "scheduled_time": "18:00:00"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["available"] is False
    assert resp.json()["message"] == "Slot occupied"

    resp = await client.get(
        f"{API}/sessions/user/{user.id}/availability",
        params={"scheduled_date": "2026-03-12", "scheduled_time": "07:00:00"},
    )
    assert resp.json()["data"]["available"] is True

    resp = await client.get(f"{API}/sessions/user/{uuid.uuid4()}/availability", params={"scheduled_date": "2026-03-12"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_oversized_weight_is_rejected(client: AsyncClient, user, exercise):
    session_id = (await _schedule(client, user))["id"]
    await client.post(f"{API}/sessions/{session_id}/start")

    resp = await client.post(
        f"{API}/sessions/{session_id}/exercises",
        json={"exercise_id": str(exercise.id), "exercise_order": 1, "sets_completed": 1, "weight_used_kg": 1000000},
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "weight_used_kg"
