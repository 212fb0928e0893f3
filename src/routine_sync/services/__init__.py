"""Application services for routine-sync."""

from .progress_stats import ProgressService, motivation_message, remaining_days
from .routines import RoutineChange, RoutineService
from .tracker import WorkoutTracker
from .workout_logs import PendingToggle, WorkoutLogService

__all__ = [
    "motivation_message",
    "PendingToggle",
    "ProgressService",
    "remaining_days",
    "RoutineChange",
    "RoutineService",
    "WorkoutLogService",
    "WorkoutTracker",
]
