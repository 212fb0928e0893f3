"""Date to workout projection."""

from .projector import (
    ScheduledWorkout,
    is_rest_day,
    project_schedule,
    resolve_workout_for_date,
    routine_window,
)

__all__ = [
    "is_rest_day",
    "project_schedule",
    "resolve_workout_for_date",
    "routine_window",
    "ScheduledWorkout",
]
