"""Tests for the SQLite repositories and the active-routine cache."""

from datetime import date

import pytest

from routine_sync.db import (
    ActiveRoutineCache,
    CalendarTokenRepository,
    EventMappingRepository,
    RoutineRepository,
    SyncStatusRepository,
    WorkoutLogRepository,
)
from routine_sync.models.calendar import CalendarToken, EventMapping, SyncState, SyncStatus
from routine_sync.models.routine import Routine
from routine_sync.models.workout_log import WorkoutLog

USER_ID = "user-1"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestActiveRoutineCache:
    """Tests for ActiveRoutineCache."""

    def test_expires_after_ttl(self, sample_routine):
        """Test entries live for the TTL only."""
        clock = FakeClock()
        cache = ActiveRoutineCache(ttl=300, clock=clock)
        cache.set(USER_ID, sample_routine)

        clock.now = 299
        assert cache.get(USER_ID) == (True, sample_routine)
        clock.now = 300
        assert cache.get(USER_ID) == (False, None)

    def test_caches_none(self):
        """Test a missing active routine is cached too."""
        cache = ActiveRoutineCache()
        cache.set(USER_ID, None)
        assert cache.get(USER_ID) == (True, None)

    def test_invalidate(self, sample_routine):
        """Test per-user and global invalidation."""
        cache = ActiveRoutineCache()
        cache.set("a", sample_routine)
        cache.set("b", sample_routine)

        cache.invalidate("a")
        assert cache.get("a") == (False, None)
        assert cache.get("b")[0]

        cache.invalidate()
        assert cache.get("b") == (False, None)


class TestRoutineRepository:
    """Tests for RoutineRepository."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, temp_db_path, sample_routine):
        """Test a routine survives a round trip through SQLite."""
        repo = RoutineRepository(temp_db_path)
        routine_id = await repo.create(sample_routine)
        assert isinstance(routine_id, str)
        assert routine_id == sample_routine.id

        loaded = await repo.get(routine_id)
        assert loaded == sample_routine
        assert loaded.workouts[0].exercises[0].name == "벤치프레스"

    @pytest.mark.asyncio
    async def test_get_missing(self, temp_db_path):
        """Test unknown ids return None."""
        assert await RoutineRepository(temp_db_path).get("nope") is None

    @pytest.mark.asyncio
    async def test_single_active_routine(self, temp_db_path, sample_routine):
        """Test activating one routine deactivates the others."""
        repo = RoutineRepository(temp_db_path)
        first = await repo.create(sample_routine)
        second = await repo.create(Routine(user_id=USER_ID, name="other"))

        await repo.set_active(USER_ID, first)
        await repo.set_active(USER_ID, second)

        active = await repo.list_active(USER_ID)
        assert [r.id for r in active] == [second]
        assert (await repo.get_active(USER_ID)).activated_at is not None
        assert not (await repo.get(first)).is_active

    @pytest.mark.asyncio
    async def test_mutations_invalidate_cache(self, temp_db_path, sample_routine):
        """Test the cached active routine never outlives a change."""
        repo = RoutineRepository(temp_db_path)
        routine_id = await repo.create(sample_routine)
        assert await repo.get_active(USER_ID) is None

        await repo.set_active(USER_ID, routine_id)
        assert (await repo.get_active(USER_ID)).id == routine_id

        await repo.deactivate(USER_ID, routine_id)
        assert await repo.get_active(USER_ID) is None

    @pytest.mark.asyncio
    async def test_update_and_delete(self, temp_db_path, sample_routine):
        """Test edits are stored and deletes remove the row."""
        repo = RoutineRepository(temp_db_path)
        routine_id = await repo.create(sample_routine)

        sample_routine.name = "renamed"
        sample_routine.workouts = sample_routine.workouts[:2]
        await repo.update(sample_routine)
        loaded = await repo.get(routine_id)
        assert loaded.name == "renamed"
        assert len(loaded.workouts) == 2

        await repo.delete(USER_ID, routine_id)
        assert await repo.get(routine_id) is None


class TestWorkoutLogRepository:
    """Tests for WorkoutLogRepository."""

    @pytest.mark.asyncio
    async def test_upsert_is_unique_per_key(self, temp_db_path):
        """Test a second upsert for the same key replaces the first."""
        repo = WorkoutLogRepository(temp_db_path)
        key = dict(user_id=USER_ID, routine_id="r", workout_id="w", date=date(2024, 1, 2))

        first = await repo.upsert(WorkoutLog(**key, completed_exercises={"e1"}))
        second = await repo.upsert(
            WorkoutLog(**key, completed_exercises={"e1", "e2"}, is_completed=True)
        )

        assert first.id == second.id
        stored = await repo.get(USER_ID, "r", "w", date(2024, 1, 2))
        assert stored.completed_exercises == {"e1", "e2"}
        assert stored.is_completed

    @pytest.mark.asyncio
    async def test_list_in_range(self, temp_db_path):
        """Test range queries are inclusive, ordered and per user."""
        repo = WorkoutLogRepository(temp_db_path)
        for day in (3, 1, 2, 9):
            await repo.upsert(
                WorkoutLog(user_id=USER_ID, routine_id="r", workout_id="w", date=date(2024, 1, day))
            )
        await repo.upsert(
            WorkoutLog(user_id="someone-else", routine_id="r", workout_id="w", date=date(2024, 1, 2))
        )

        logs = await repo.list_in_range(USER_ID, date(2024, 1, 1), date(2024, 1, 3))
        assert [log.date.day for log in logs] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_delete_by_routine(self, temp_db_path):
        """Test logs are removed with their routine."""
        repo = WorkoutLogRepository(temp_db_path)
        await repo.upsert(WorkoutLog(user_id=USER_ID, routine_id="r", workout_id="w", date=date(2024, 1, 1)))
        await repo.upsert(WorkoutLog(user_id=USER_ID, routine_id="keep", workout_id="w", date=date(2024, 1, 1)))

        assert await repo.delete_by_routine("r") == 1
        assert await repo.get(USER_ID, "keep", "w", date(2024, 1, 1)) is not None


class TestEventMappingRepository:
    """Tests for EventMappingRepository."""

    @pytest.mark.asyncio
    async def test_round_trip_by_occurrence(self, temp_db_path):
        """Test a mapping is found again by (routine, workout, date)."""
        repo = EventMappingRepository(temp_db_path)
        await repo.upsert(
            EventMapping(
                user_id=USER_ID,
                routine_id="r",
                workout_id="w",
                google_event_id="evt-42",
                event_date=date(2024, 1, 4),
            )
        )

        mapping = await repo.get(USER_ID, "r", "w", date(2024, 1, 4))
        assert mapping.google_event_id == "evt-42"
        assert (await repo.get_by_event_id(USER_ID, "evt-42")).event_date == date(2024, 1, 4)
        assert await repo.get_by_event_id("intruder", "evt-42") is None

    @pytest.mark.asyncio
    async def test_upsert_repoints_existing(self, temp_db_path):
        """Test the same occurrence keeps a single mapping."""
        repo = EventMappingRepository(temp_db_path)
        for event_id in ("evt-1", "evt-2"):
            await repo.upsert(
                EventMapping(
                    user_id=USER_ID,
                    routine_id="r",
                    workout_id="w",
                    google_event_id=event_id,
                    event_date=date(2024, 1, 4),
                )
            )

        mappings = await repo.list_by_routine(USER_ID, "r")
        assert [m.google_event_id for m in mappings] == ["evt-2"]

    @pytest.mark.asyncio
    async def test_deletes(self, temp_db_path):
        """Test deleting by id, routine and user."""
        repo = EventMappingRepository(temp_db_path)
        for day, routine_id in ((1, "r"), (2, "r"), (3, "other")):
            await repo.upsert(
                EventMapping(
                    user_id=USER_ID,
                    routine_id=routine_id,
                    workout_id="w",
                    google_event_id=f"evt-{day}",
                    event_date=date(2024, 1, day),
                )
            )

        first = (await repo.list_by_routine(USER_ID, "r"))[0]
        assert await repo.delete_many([first.id]) == 1
        assert await repo.delete_by_routine(USER_ID, "r") == 1
        assert len(await repo.list_by_user(USER_ID)) == 1
        assert await repo.delete_by_user(USER_ID) == 1


class TestCalendarStateRepositories:
    """Tests for SyncStatusRepository and CalendarTokenRepository."""

    @pytest.mark.asyncio
    async def test_sync_status_upsert(self, temp_db_path):
        """Test one status row per user."""
        repo = SyncStatusRepository(temp_db_path)
        await repo.upsert(SyncState(user_id=USER_ID, status=SyncStatus.SYNCING))
        await repo.upsert(
            SyncState(user_id=USER_ID, status=SyncStatus.ERROR, error_message="boom")
        )

        state = await repo.get(USER_ID)
        assert state.status == SyncStatus.ERROR
        assert state.error_message == "boom"

        await repo.delete(USER_ID)
        assert await repo.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_token_keeps_email_and_marks_expired(self, temp_db_path):
        """Test refreshes keep the account email and expiry can be flagged."""
        repo = CalendarTokenRepository(temp_db_path)
        await repo.upsert(
            CalendarToken(user_id=USER_ID, credentials="{}", account_email="a@example.com")
        )
        await repo.upsert(CalendarToken(user_id=USER_ID, credentials='{"token": "new"}'))

        token = await repo.get(USER_ID)
        assert token.account_email == "a@example.com"
        assert token.credentials == '{"token": "new"}'

        await repo.mark_expired(USER_ID)
        assert (await repo.get(USER_ID)).token_expired
