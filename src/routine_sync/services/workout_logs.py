"""Completion log store.

Toggles are applied in two phases. The in-memory projection changes
immediately and the caller gets a ``PendingToggle`` back; the database upsert
runs as a background task. Writes for the same (user, routine, workout, date)
are chained so they reach the database in the order they were issued.
"""

import asyncio
import logging
from datetime import date, timedelta
from pathlib import Path

import aiosqlite

from ..config import SyncSettings
from ..db.repositories import WorkoutLogRepository
from ..errors import PersistenceError
from ..models.routine import Workout
from ..models.workout_log import WorkoutLog, WorkoutProgress, is_complete
from ..utils.dates import month_bounds

logger = logging.getLogger(__name__)

LogKey = tuple[str, str, str, date]

# Upper bound for streak lookups
MAX_STREAK_DAYS = 365


class PendingToggle:
    """An applied-but-not-yet-persisted toggle.

    ``log`` is the optimistic state, ``previous`` the state before the toggle.
    """

    def __init__(
        self,
        store: "WorkoutLogService",
        log: WorkoutLog,
        previous: WorkoutLog,
        task: asyncio.Task,
    ):
        self._store = store
        self.log = log
        self.previous = previous
        self.task = task

    @property
    def completion_changed(self) -> bool:
        return self.log.is_completed != self.previous.is_completed

    async def wait(self) -> WorkoutLog:
        """Wait for persistence and return the stored log.

        Raises:
            PersistenceError: If the database write failed
        """
        return await asyncio.shield(self.task)

    def rollback(self) -> None:
        """Restore the in-memory projection to its pre-toggle state.

        Meant to be called after ``wait()`` raised. Has no effect when a
        later toggle of the same log has superseded this one.
        """
        self._store._restore(self.log, self.previous)


class WorkoutLogService:
    """Reads and writes workout completion logs."""

    def __init__(self, db_path: Path | None = None, settings: SyncSettings | None = None):
        self.repo = WorkoutLogRepository(db_path)
        self.settings = settings or SyncSettings()
        self._logs: dict[LogKey, WorkoutLog] = {}
        self._writes: dict[LogKey, asyncio.Task] = {}

    async def toggle_exercise(
        self,
        user_id: str,
        routine_id: str,
        workout_id: str,
        exercise_id: str,
        log_date: date,
        total_exercise_count: int,
        exercise_ids: list[str] | None = None,
    ) -> PendingToggle:
        """Tick or untick one exercise of a workout on a date.

        Args:
            user_id: Owner of the log
            routine_id: Routine the workout belongs to
            workout_id: Workout being logged
            exercise_id: Exercise to flip
            log_date: Date of the workout occurrence
            total_exercise_count: Current number of exercises in the workout
            exercise_ids: Current exercise ids; when given, stale ticks of
                removed exercises do not count towards completion

        Returns:
            PendingToggle carrying the optimistic log and the write task
        """
        key = (user_id, routine_id, workout_id, log_date)
        current = await self._current(key)

        updated = current.toggled(exercise_id, total_exercise_count, exercise_ids)
        self._logs[key] = updated
        task = self._schedule_write(key, updated)
        return PendingToggle(self, updated, current, task)

    async def complete_workout(
        self,
        user_id: str,
        routine_id: str,
        workout_id: str,
        log_date: date,
        exercise_ids: list[str],
    ) -> WorkoutLog:
        """Mark every exercise of a workout done in one write."""
        key = (user_id, routine_id, workout_id, log_date)
        current = await self._current(key)

        completed = set(exercise_ids)
        updated = WorkoutLog(
            id=current.id,
            user_id=user_id,
            routine_id=routine_id,
            workout_id=workout_id,
            date=log_date,
            completed_exercises=completed,
            is_completed=is_complete(completed, len(completed)),
        )
        self._logs[key] = updated
        return await self._schedule_write(key, updated)

    async def get_log(
        self, user_id: str, routine_id: str, workout_id: str, log_date: date
    ) -> WorkoutLog | None:
        """Get the current log for one workout occurrence."""
        key = (user_id, routine_id, workout_id, log_date)
        if key in self._logs:
            return self._logs[key]
        return await self.repo.get(*key)

    async def get_logs_for_date(self, user_id: str, log_date: date) -> list[WorkoutLog]:
        return await self.get_logs_in_range(user_id, log_date, log_date)

    async def get_logs_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[WorkoutLog]:
        """Logs between start and end inclusive, ordered by date."""
        stored = await self.repo.list_in_range(user_id, start, end)
        merged = {log.key: log for log in stored}
        for key, log in self._logs.items():
            if key[0] == user_id and start <= key[3] <= end:
                merged[key] = log
        return sorted(merged.values(), key=lambda log: (log.date, log.workout_id))

    async def get_weekly_logs(self, user_id: str, start: date) -> list[WorkoutLog]:
        """Logs of the seven days starting at ``start``."""
        return await self.get_logs_in_range(user_id, start, start + timedelta(days=6))

    async def get_monthly_logs(self, user_id: str, year: int, month: int) -> list[WorkoutLog]:
        """Logs of one calendar month."""
        first, last = month_bounds(year, month)
        return await self.get_logs_in_range(user_id, first, last)

    async def get_streak_days(self, user_id: str, today: date | None = None) -> int:
        """Consecutive days, ending today, with at least one completed workout."""
        today = today or self.settings.today()
        earliest = today - timedelta(days=MAX_STREAK_DAYS - 1)
        logs = await self.get_logs_in_range(user_id, earliest, today)
        completed_dates = {log.date for log in logs if log.is_completed}

        streak = 0
        day = today
        while day in completed_dates and streak < MAX_STREAK_DAYS:
            streak += 1
            day -= timedelta(days=1)
        return streak

    async def get_workout_progress(
        self, user_id: str, routine_id: str, workout: Workout, log_date: date
    ) -> WorkoutProgress:
        """Completed vs. total exercises of a workout on a date."""
        log = await self.get_log(user_id, routine_id, workout.id, log_date)
        total = len(workout.exercises)
        if log is None:
            return WorkoutProgress(completed_count=0, total_count=total, is_completed=False)

        done = len(log.completed_exercises & set(workout.exercise_ids))
        return WorkoutProgress(
            completed_count=done,
            total_count=total,
            is_completed=log.is_completed,
        )

    async def flush(self) -> None:
        """Wait for every pending write to finish."""
        pending = list(self._writes.values())
        if pending:
            await asyncio.wait(pending)

    async def _current(self, key: LogKey) -> WorkoutLog:
        if key not in self._logs:
            stored = await self.repo.get(*key)
            # Another toggle may have filled the slot while we were reading
            self._logs.setdefault(
                key,
                stored
                or WorkoutLog(
                    user_id=key[0], routine_id=key[1], workout_id=key[2], date=key[3]
                ),
            )
        return self._logs[key]

    def _schedule_write(self, key: LogKey, log: WorkoutLog) -> asyncio.Task:
        previous = self._writes.get(key)
        task = asyncio.create_task(self._persist(key, log, previous))
        self._writes[key] = task
        task.add_done_callback(lambda t: self._on_written(key, log, t))
        return task

    async def _persist(
        self, key: LogKey, log: WorkoutLog, previous: asyncio.Task | None
    ) -> WorkoutLog:
        if previous is not None and not previous.done():
            # Ordering only; the earlier write reports its own failure
            await asyncio.wait([previous])
        try:
            return await self.repo.upsert(log)
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceError(
                f"Failed to save workout log for {key[2]} on {key[3].isoformat()}: {e}"
            ) from e

    def _on_written(self, key: LogKey, log: WorkoutLog, task: asyncio.Task) -> None:
        if self._writes.get(key) is task:
            del self._writes[key]
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error("%s", error)
            return

        # Drop the projection once the database has caught up with it
        if self._logs.get(key) is log and key not in self._writes:
            del self._logs[key]

    def _restore(self, log: WorkoutLog, previous: WorkoutLog) -> None:
        key = log.key
        if self._logs.get(key) is not log:
            return
        if key in self._writes:
            self._logs[key] = previous
        else:
            # Nothing in flight: the database already holds the previous state
            del self._logs[key]
