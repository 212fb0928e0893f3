"""Tests for the JSON API."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from routine_sync.web import create_app

ROUTINE_JSON = {
    "name": "상하체",
    "created_at": "2024-01-01T08:00:00",
    "settings": {"duration_weeks": 1, "workouts_per_week": 2, "split_type": "upper_lower"},
    "workouts": [
        {
            "id": "w-upper",
            "name": "Upper",
            "exercises": [
                {"id": "e-bench", "name": "벤치프레스", "sets": 3, "reps": "8-10", "muscle_group": "chest"},
                {"id": "e-row", "name": "바벨 로우", "sets": 3, "reps": "8-10", "muscle_group": "back"},
            ],
        },
        {
            "name": "Lower",
            "exercises": [
                {"name": "스쿼트", "sets": 5, "reps": "5", "muscle_group": "legs"},
            ],
        },
    ],
}


@pytest_asyncio.fixture
async def client(services):
    """HTTP client bound to an app using the fake calendar."""
    app = create_app(services=services)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": "user-1"},
    ) as ac:
        yield ac
    await services.logs.flush()


async def _create_active(client) -> str:
    response = await client.post("/api/routines", json=ROUTINE_JSON)
    routine_id = response.json()["id"]
    await client.post(f"/api/routines/{routine_id}/activate?start_date=2024-01-01")
    return routine_id


class TestHealth:
    """Tests for the health endpoint."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test health check returns healthy."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestRoutineRoutes:
    """Tests for /api/routines."""

    @pytest.mark.asyncio
    async def test_create_assigns_ids(self, client):
        """Test missing workout and exercise ids are generated."""
        response = await client.post("/api/routines", json=ROUTINE_JSON)
        assert response.status_code == 201

        body = response.json()
        assert body["user_id"] == "user-1"
        assert body["is_active"] is False
        lower = body["workouts"][1]
        assert lower["id"]
        assert lower["day_number"] == 2
        assert lower["exercises"][0]["id"]

    @pytest.mark.asyncio
    async def test_create_invalid(self, client):
        """Test an unknown muscle group is rejected."""
        data = {
            "name": "bad",
            "workouts": [
                {"name": "x", "exercises": [{"name": "y", "sets": 1, "reps": "1", "muscle_group": "tail"}]}
            ],
        }
        response = await client.post("/api/routines", json=data)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_routine(self, client):
        """Test unknown routines give 404."""
        response = await client.get("/api/routines/nope")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_routines_are_per_user(self, client):
        """Test another user cannot see the routine."""
        routine_id = (await client.post("/api/routines", json=ROUTINE_JSON)).json()["id"]

        response = await client.get(
            f"/api/routines/{routine_id}", headers={"X-User-Id": "user-2"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_activate_without_calendar(self, client):
        """Test activation reports no sync when disconnected."""
        routine_id = (await client.post("/api/routines", json=ROUTINE_JSON)).json()["id"]

        response = await client.post(f"/api/routines/{routine_id}/activate")
        body = response.json()
        assert body["routine"]["is_active"] is True
        assert body["sync"] is None

        listed = (await client.get("/api/routines")).json()["routines"]
        assert [r["id"] for r in listed] == [routine_id]


class TestScheduleRoutes:
    """Tests for /api/schedule."""

    @pytest.mark.asyncio
    async def test_no_active_routine(self, client):
        """Test schedule needs an active routine."""
        response = await client.get("/api/schedule/today?date=2024-01-01")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_today(self, client):
        """Test the workout of a weekday with its progress."""
        await _create_active(client)

        body = (await client.get("/api/schedule/today?date=2024-01-02")).json()
        assert body["is_rest_day"] is False
        assert body["workout"]["name"] == "Lower"
        assert body["progress"]["total_count"] == 1
        assert body["completed_exercises"] == []

    @pytest.mark.asyncio
    async def test_weekend(self, client):
        """Test Saturday is a rest day."""
        await _create_active(client)

        body = (await client.get("/api/schedule/today?date=2024-01-06")).json()
        assert body["is_rest_day"] is True
        assert body["workout"] is None

    @pytest.mark.asyncio
    async def test_week(self, client):
        """Test a week lists seven days with two rest days."""
        await _create_active(client)

        body = (await client.get("/api/schedule/week?date=2024-01-03")).json()
        assert [d["date"] for d in body["days"]][0] == "2024-01-01"
        assert len(body["days"]) == 7
        assert sum(d["is_rest_day"] for d in body["days"]) == 2

    @pytest.mark.asyncio
    async def test_month(self, client):
        """Test a month lists only weekdays."""
        await _create_active(client)

        body = (await client.get("/api/schedule/month?year=2024&month=1")).json()
        assert len(body["workouts"]) == 23


class TestLogRoutes:
    """Tests for /api/logs."""

    @pytest.mark.asyncio
    async def test_toggle_offline(self, client):
        """Test toggles succeed without a calendar and report why sync was skipped."""
        await _create_active(client)

        payload = {"workout_id": "w-upper", "exercise_id": "e-bench", "date": "2024-01-01"}
        body = (await client.post("/api/logs/toggle", json=payload)).json()
        assert body["log"]["completed_exercises"] == ["e-bench"]
        assert body["sync"]["skipped_reason"] == "completion_unchanged"

        payload["exercise_id"] = "e-row"
        body = (await client.post("/api/logs/toggle", json=payload)).json()
        assert body["log"]["is_completed"] is True
        assert body["sync"]["skipped_reason"] == "not_connected"

        logs = (await client.get("/api/logs?start=2024-01-01&end=2024-01-07")).json()["logs"]
        assert len(logs) == 1

    @pytest.mark.asyncio
    async def test_toggle_unknown_workout(self, client):
        """Test unknown workouts give 400."""
        await _create_active(client)

        payload = {"workout_id": "w-nope", "exercise_id": "e-bench", "date": "2024-01-01"}
        response = await client.post("/api/logs/toggle", json=payload)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_toggle_unknown_exercise(self, client):
        """Test exercises outside the workout give 400 and leave no log."""
        await _create_active(client)

        payload = {"workout_id": "w-upper", "exercise_id": "not-an-exercise", "date": "2024-01-01"}
        response = await client.post("/api/logs/toggle", json=payload)
        assert response.status_code == 400

        logs = (await client.get("/api/logs?start=2024-01-01")).json()["logs"]
        assert logs == []

    @pytest.mark.asyncio
    async def test_toggle_marks_event(self, client, connect_user, fake_client):
        """Test completing a workout updates its calendar event."""
        await connect_user()
        await _create_active(client)

        payload = {"workout_id": "w-upper", "date": "2024-01-01"}
        body = (await client.post("/api/logs/complete", json=payload)).json()
        assert body["sync"]["synced"] is True
        assert body["sync"]["summary"] == "✅ 🏋️ Upper (상하체)"
        assert body["sync"]["color_id"] == "10"

    @pytest.mark.asyncio
    async def test_range_order(self, client):
        """Test end before start is rejected."""
        response = await client.get("/api/logs?start=2024-01-05&end=2024-01-01")
        assert response.status_code == 400


class TestStatsRoutes:
    """Tests for /api/stats."""

    @pytest.mark.asyncio
    async def test_stats(self, client):
        """Test stats reflect a completed workout."""
        await _create_active(client)
        await client.post("/api/logs/complete", json={"workout_id": "w-upper", "date": "2024-01-01"})

        body = (await client.get("/api/stats?day=2024-01-01")).json()
        assert body["weekly"]["completed_workouts"] == 1
        assert body["streak_days"] == 1
        assert body["motivation"]
        assert body["routine_progress"]["remaining_workouts"] == 1
        assert "remaining_days" not in body["routine_progress"]
        assert isinstance(body["remaining_days"], int)


class TestCalendarRoutes:
    """Tests for /api/calendar."""

    @pytest.mark.asyncio
    async def test_auth_url_carries_user(self, client):
        """Test the consent URL carries the user in its state."""
        body = (await client.get("/api/calendar/auth-url")).json()
        assert "state=user-1" in body["auth_url"]
        assert "/api/calendar/callback" in body["auth_url"]

    @pytest.mark.asyncio
    async def test_callback(self, client):
        """Test a good code connects the user named in state."""
        response = await client.get("/api/calendar/callback?code=good-code&state=user-1")
        assert response.status_code == 200
        assert response.json()["account_email"] == "lifter@example.com"

        status = (await client.get("/api/calendar/status")).json()
        assert status["is_connected"] is True

    @pytest.mark.asyncio
    async def test_callback_rejected(self, client):
        """Test bad codes and denied consent give 400."""
        response = await client.get("/api/calendar/callback?code=bad&state=user-1")
        assert response.status_code == 400

        response = await client.get("/api/calendar/callback?error=access_denied")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sync_requires_connection(self, client):
        """Test manual sync needs a connected calendar."""
        response = await client.post("/api/calendar/sync")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sync_and_disconnect(self, client, fake_client, fake_auth):
        """Test manual sync then disconnect."""
        await client.post("/api/calendar/connect", json={"code": "good-code"})
        await _create_active(client)

        body = (await client.post("/api/calendar/sync?start_date=2024-01-01")).json()
        assert body["success"] is True
        assert body["created_count"] == 5

        status = (await client.post("/api/calendar/disconnect")).json()
        assert status["is_connected"] is False
        assert fake_auth.revoked == ["user-1"]
