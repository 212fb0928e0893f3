"""Data models for routine-sync."""

from .calendar import (
    CalendarConnectionState,
    CalendarEvent,
    CalendarToken,
    CompletionSyncResult,
    EventDateTime,
    EventMapping,
    Reminder,
    SyncResult,
    SyncState,
    SyncStatus,
    ToggleResult,
    ValidationResult,
)
from .routine import Exercise, MuscleGroup, Routine, RoutineSettings, SplitType, Workout
from .workout_log import WorkoutLog, WorkoutProgress

__all__ = [
    "CalendarConnectionState",
    "CalendarEvent",
    "CalendarToken",
    "CompletionSyncResult",
    "EventDateTime",
    "EventMapping",
    "Exercise",
    "MuscleGroup",
    "Reminder",
    "Routine",
    "RoutineSettings",
    "SplitType",
    "SyncResult",
    "SyncState",
    "SyncStatus",
    "ToggleResult",
    "ValidationResult",
    "Workout",
    "WorkoutLog",
    "WorkoutProgress",
]
