"""Exercise toggles with calendar completion sync."""

import logging
from datetime import date

from ..calendar.sync import CalendarSyncEngine
from ..errors import PersistenceError
from ..models.calendar import CompletionSyncResult, ToggleResult
from ..models.routine import Routine, Workout
from .workout_logs import WorkoutLogService

logger = logging.getLogger(__name__)

SKIP_COMPLETION_UNCHANGED = "completion_unchanged"


class WorkoutTracker:
    """Records exercise completion and mirrors workout completion to the calendar.

    The local log is the result of every call; the calendar outcome rides
    along and never turns a successful local write into a failure.
    """

    def __init__(self, logs: WorkoutLogService, engine: CalendarSyncEngine):
        self.logs = logs
        self.engine = engine

    async def toggle_exercise(
        self,
        user_id: str,
        routine_id: str,
        workout_id: str,
        exercise_id: str,
        log_date: date,
        total_exercise_count: int,
        exercise_ids: list[str] | None = None,
    ) -> ToggleResult:
        """Toggle an exercise and, if the workout's completion flipped, sync it.

        Raises:
            PersistenceError: If the log could not be saved. The in-memory
                projection is rolled back first.
        """
        pending = await self.logs.toggle_exercise(
            user_id,
            routine_id,
            workout_id,
            exercise_id,
            log_date,
            total_exercise_count,
            exercise_ids,
        )
        try:
            log = await pending.wait()
        except PersistenceError:
            pending.rollback()
            raise

        if not pending.completion_changed:
            return ToggleResult(
                log=log,
                sync=CompletionSyncResult(
                    synced=False, skipped_reason=SKIP_COMPLETION_UNCHANGED
                ),
            )

        sync = await self.engine.sync_completion_status(
            user_id, routine_id, workout_id, log_date, log.is_completed
        )
        return ToggleResult(log=log, sync=sync)

    async def toggle_in_routine(
        self,
        routine: Routine,
        workout_id: str,
        exercise_id: str,
        log_date: date,
    ) -> ToggleResult:
        """Toggle using the routine's live exercises for the workout.

        Raises:
            ValueError: If the workout or exercise is not part of the routine
        """
        workout = self._workout(routine, workout_id)
        if workout.get_exercise(exercise_id) is None:
            raise ValueError(f"Exercise {exercise_id} is not part of workout {workout.id}")
        return await self.toggle_exercise(
            routine.user_id,
            routine.id,
            workout.id,
            exercise_id,
            log_date,
            len(workout.exercises),
            workout.exercise_ids,
        )

    async def complete_workout(
        self, routine: Routine, workout_id: str, log_date: date
    ) -> ToggleResult:
        """Tick every exercise of a workout and sync completion."""
        workout = self._workout(routine, workout_id)
        before = await self.logs.get_log(routine.user_id, routine.id, workout.id, log_date)
        was_completed = before.is_completed if before else False

        log = await self.logs.complete_workout(
            routine.user_id, routine.id, workout.id, log_date, workout.exercise_ids
        )
        if log.is_completed == was_completed:
            return ToggleResult(
                log=log,
                sync=CompletionSyncResult(
                    synced=False, skipped_reason=SKIP_COMPLETION_UNCHANGED
                ),
            )

        sync = await self.engine.sync_completion_status(
            routine.user_id, routine.id, workout.id, log_date, log.is_completed
        )
        return ToggleResult(log=log, sync=sync)

    def _workout(self, routine: Routine, workout_id: str) -> Workout:
        workout = routine.get_workout(workout_id)
        if workout is None:
            raise ValueError(f"Workout {workout_id} is not part of routine {routine.id}")
        return workout
